"""Tests du chargement de la configuration TOML."""

from __future__ import annotations

from pathlib import Path

import pytest

from francaisfacile.core.config import DEFAULT_DB_PATH, SyncConfig, load_sync_config


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "francaisfacile.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_sync_config_none_returns_defaults() -> None:
    config = load_sync_config(None)
    assert config == SyncConfig()
    assert config.db_path == DEFAULT_DB_PATH
    assert config.listing_delay_s == 0.5
    assert config.detail_delay_s == 0.3
    assert config.max_pages_per_category == 50


def test_load_sync_config_reads_values_and_resolves_paths(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """
base_url = "https://miroir.example/"
db_path = "data/exercises.db"
acquisition_profile_id = "safe_v1"
rate_limit_s = 1.5
listing_delay_s = 1
max_pages_per_category = 5
markup_file = "/etc/francaisfacile/markup.toml"
unknown_key = "ignored"

[headers]
Referer = "https://francaisfacile.rfi.fr/"
""",
    )

    config = load_sync_config(path)

    assert config.base_url == "https://miroir.example"
    assert config.db_path == tmp_path / "data" / "exercises.db"
    assert config.acquisition_profile_id == "safe_v1"
    assert config.rate_limit_s == 1.5
    assert config.listing_delay_s == 1.0
    assert config.detail_delay_s == 0.3
    assert config.max_pages_per_category == 5
    assert config.markup_file == Path("/etc/francaisfacile/markup.toml")
    assert config.headers == {"Referer": "https://francaisfacile.rfi.fr/"}


@pytest.mark.parametrize(
    "content",
    [
        'listing_delay_s = "vite"',
        "detail_delay_s = -1",
        "max_pages_per_category = 0",
        "max_pages_per_category = 2.5",
        "rate_limit_s = true",
        'headers = "x"',
    ],
)
def test_load_sync_config_rejects_invalid_values(tmp_path: Path, content: str) -> None:
    with pytest.raises(ValueError):
        load_sync_config(_write(tmp_path, content))


def test_load_sync_config_invalid_toml_raises_value_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_sync_config(_write(tmp_path, "base_url = "))
