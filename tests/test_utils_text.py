"""Tests pour core.utils.text et core.utils.fallback."""

import pytest

from francaisfacile.core.utils.fallback import first_match
from francaisfacile.core.utils.text import (
    label_from_slug,
    normalize_bracketed_annotations,
    normalize_whitespace,
)


def test_normalize_whitespace() -> None:
    assert normalize_whitespace("  a   b \n c  ") == "a b c"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Bonjour [Musique] à tous", "Bonjour\n[Musique]\nà tous"),
        ("[Générique]\n\n  Premier   paragraphe", "[Générique]\nPremier paragraphe"),
        ("Ligne un\n\n\nLigne deux", "Ligne un\nLigne deux"),
        ("Sans annotation", "Sans annotation"),
    ],
)
def test_normalize_bracketed_annotations(text: str, expected: str) -> None:
    assert normalize_bracketed_annotations(text) == expected


@pytest.mark.parametrize(
    ("slug", "expected"),
    [
        ("societe", "Societe"),
        ("SOCIÉTÉ", "Société"),
        ("soci%C3%A9t%C3%A9", "Société"),
        ("vie-pratique", "Vie-pratique"),
        ("", ""),
    ],
)
def test_label_from_slug(slug: str, expected: str) -> None:
    assert label_from_slug(slug) == expected


def test_first_match_stops_at_first_non_empty_result() -> None:
    calls: list[str] = []

    def empty(value: str) -> str | None:
        calls.append("empty")
        return ""

    def found(value: str) -> str | None:
        calls.append("found")
        return value.upper()

    def never(value: str) -> str | None:
        calls.append("never")
        return "x"

    assert first_match([empty, found, never], "audio") == "AUDIO"
    assert calls == ["empty", "found"]


def test_first_match_returns_none_when_nothing_matches() -> None:
    assert first_match([lambda: None, lambda: ""]) is None
