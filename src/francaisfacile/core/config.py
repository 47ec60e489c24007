"""Configuration de synchronisation : dataclass + chargement TOML."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from francaisfacile.core.acquisition.profiles import DEFAULT_ACQUISITION_PROFILE_ID
from francaisfacile.core.adapters.markup import DEFAULT_MARKUP_PROFILE_ID
from francaisfacile.core.models import RFI_BASE_URL

DEFAULT_DB_PATH = Path("francaisfacile.db")


@dataclass
class SyncConfig:
    """Réglages d'un crawl (source, stockage, politesse, balisage)."""

    base_url: str = RFI_BASE_URL
    db_path: Path = DEFAULT_DB_PATH
    acquisition_profile_id: str = DEFAULT_ACQUISITION_PROFILE_ID
    user_agent: str | None = None
    rate_limit_s: float | None = None
    """Intervalle minimal entre requêtes ; None = valeur du profil d'acquisition."""
    listing_delay_s: float = 0.5
    detail_delay_s: float = 0.3
    max_pages_per_category: int = 50
    markup_profile_id: str = DEFAULT_MARKUP_PROFILE_ID
    markup_file: Path | None = None
    """Fichier TOML de sélecteurs (remplace/complète le profil de balisage)."""
    log_file: Path | None = None
    headers: dict[str, str] = field(default_factory=dict)


def read_toml(path: Path) -> dict[str, Any]:
    """Lit un fichier TOML (stdlib tomllib)."""
    with open(path, "rb") as file_obj:
        return tomllib.load(file_obj)


def _as_float(key: str, value: Any, *, minimum: float = 0.0) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{key}: nombre attendu, reçu {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key}: nombre attendu, reçu {value!r}") from None
    if number < minimum:
        raise ValueError(f"{key}: doit être >= {minimum}, reçu {number}")
    return number


def _as_int(key: str, value: Any, *, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"{key}: entier attendu, reçu {value!r}")
    try:
        number = int(value)
    except ValueError:
        raise ValueError(f"{key}: entier attendu, reçu {value!r}") from None
    if number < minimum:
        raise ValueError(f"{key}: doit être >= {minimum}, reçu {number}")
    return number


def sync_config_from_dict(data: dict[str, Any], *, base_dir: Path | None = None) -> SyncConfig:
    """
    Construit un SyncConfig depuis un dict (clés inconnues ignorées).
    Les chemins relatifs sont résolus par rapport à base_dir.
    """
    known = {f.name for f in fields(SyncConfig)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known or value is None:
            continue
        if key in ("rate_limit_s", "listing_delay_s", "detail_delay_s"):
            values[key] = _as_float(key, value)
        elif key == "max_pages_per_category":
            values[key] = _as_int(key, value)
        elif key in ("db_path", "markup_file", "log_file"):
            path = Path(value)
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            values[key] = path
        elif key == "headers":
            if not isinstance(value, dict):
                raise ValueError("headers: table TOML attendue")
            values[key] = {str(k): str(v) for k, v in value.items()}
        else:
            values[key] = str(value).strip()
    if "base_url" in values:
        values["base_url"] = values["base_url"].rstrip("/")
    return SyncConfig(**values)


def load_sync_config(path: Path | str | None) -> SyncConfig:
    """Charge la config TOML ; config par défaut si path est None."""
    if path is None:
        return SyncConfig()
    path = Path(path)
    return sync_config_from_dict(read_toml(path), base_dir=path.parent)
