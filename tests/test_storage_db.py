"""Tests de la base SQLite des exercices."""

from __future__ import annotations

import sqlite3
from datetime import date
from pathlib import Path

import pytest

from francaisfacile.core.identity import IdMigration
from francaisfacile.core.models import ExerciseRecord, Level, SectionId
from francaisfacile.core.storage.db import ExerciseDB


@pytest.fixture
def db(tmp_path: Path) -> ExerciseDB:
    database = ExerciseDB(tmp_path / "sub" / "exercises.db")
    database.init()
    return database


def _record(exercise_id: str, slug: str, **overrides) -> ExerciseRecord:
    values = dict(
        id=exercise_id,
        title=f"Exercice {slug}",
        section=SectionId.COMPRENDRE_ACTUALITE,
        level=Level.A2,
        source_url=f"https://francaisfacile.rfi.fr/fr/podcasts/{slug}",
        categories=["Société"],
    )
    values.update(overrides)
    return ExerciseRecord(**values)


def test_init_is_idempotent(db: ExerciseDB) -> None:
    db.init()
    assert db.count() == 0


def test_create_and_find_roundtrip(db: ExerciseDB) -> None:
    record = _record(
        "abc",
        "jo",
        audio_url="https://aod/jo.mp3",
        published_at=date(2024, 1, 15),
        level=Level.C1C2,
        categories=["Société", "Sport"],
    )
    db.create(record)

    found = db.find_by_source_url(record.source_url)
    assert found == record
    assert db.get("abc") == record
    assert db.find_by_source_url("https://nope") is None
    assert db.get("nope") is None
    assert db.count() == 1


def test_create_duplicate_url_raises(db: ExerciseDB) -> None:
    db.create(_record("abc", "jo"))
    with pytest.raises(sqlite3.IntegrityError):
        db.create(_record("def", "jo"))


def test_list_ids_and_urls_in_creation_order(db: ExerciseDB) -> None:
    db.create(_record("b", "second"))
    db.create(_record("a", "first"))
    assert [i for i, _ in db.list_ids_and_urls()] == ["b", "a"]


def test_update_changes_fields_but_never_id(db: ExerciseDB) -> None:
    record = _record("abc", "jo")
    db.create(record)

    assert db.update(record.source_url, {"thumbnail_url": "https://img/jo.jpg", "published_at": date(2024, 2, 1)})
    updated = db.get("abc")
    assert updated.thumbnail_url == "https://img/jo.jpg"
    assert updated.published_at == date(2024, 2, 1)
    assert updated.id == "abc"

    assert db.update("https://nope", {"title": "x"}) is False
    assert db.update(record.source_url, {}) is True
    with pytest.raises(ValueError):
        db.update(record.source_url, {"id": "other"})


def test_add_category_tag(db: ExerciseDB) -> None:
    db.create(_record("abc", "jo"))
    assert db.add_category_tag("abc", "Sport") is True
    assert db.add_category_tag("abc", "Sport") is False
    assert db.get("abc").categories == ["Société", "Sport"]


def test_list_missing_quiz(db: ExerciseDB) -> None:
    db.create(_record("a", "a", h5p_embed_url="https://h5p/a"))
    db.create(_record("b", "b"))
    db.create(_record("c", "c", h5p_embed_url=""))
    assert [r.id for r in db.list_missing_quiz()] == ["b", "c"]


def test_reassign_ids_handles_swaps(db: ExerciseDB) -> None:
    first = _record("x", "first")
    second = _record("y", "second", categories=["Sport"])
    db.create(first)
    db.create(second)

    changed = db.reassign_ids(
        [
            IdMigration(old_id="x", new_id="y", source_url=first.source_url),
            IdMigration(old_id="y", new_id="x", source_url=second.source_url),
        ]
    )

    assert changed == 2
    assert db.get("y").source_url == first.source_url
    assert db.get("y").categories == ["Société"]
    assert db.get("x").source_url == second.source_url
    assert db.get("x").categories == ["Sport"]


def test_reassign_ids_noop_plan(db: ExerciseDB) -> None:
    record = _record("x", "first")
    db.create(record)
    assert db.reassign_ids([IdMigration(old_id="x", new_id="x", source_url=record.source_url)]) == 0
