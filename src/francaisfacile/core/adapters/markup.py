"""Profils de balisage : règles de sélection CSS versionnées pour les pages de la source.

Le balisage du site évolue indépendamment du code. Les sélecteurs sont donc des
données : un profil intégré par version de balisage, remplaçable par un fichier
TOML (``load_markup_profile``) sans toucher aux parseurs.
"""

from __future__ import annotations

import dataclasses
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ListingPattern:
    """Motif d'un bloc de listing (un exercice) et de ses champs relatifs."""

    name: str
    block: str
    link: str
    title: str
    image: str = "img"
    time: str = "time[datetime]"
    title_from_link_attr: bool = False
    """Si le titre est vide, utiliser l'attribut title du lien."""


ARTICLE_LISTING = ListingPattern(
    name="article",
    block=".m-item-list-article",
    link="a[data-article-item-link]",
    title="h2",
)

PODCAST_LISTING = ListingPattern(
    name="podcast",
    block=".m-item-list-podcast, .m-item-podcast",
    link="a[href]",
    title="h2, h3",
    title_from_link_attr=True,
)


@dataclass(frozen=True)
class MarkupProfile:
    """Ensemble de sélecteurs pour une version du balisage de la source."""

    id: str
    label: str
    category_link_marker: str = "/fr/"
    """Sous-chaîne requise dans les liens de catégories (pages en français)."""
    listing_patterns: tuple[ListingPattern, ...] = (ARTICLE_LISTING, PODCAST_LISTING)
    next_page_selectors: tuple[str, ...] = ('a[rel="next"]', ".m-pagination__link--next")
    audio_element_selectors: tuple[str, ...] = ("audio source[src]", "audio[src]")
    audio_data_attributes: tuple[str, ...] = ("data-url", "data-audio")
    audio_cdn_marker: str = "akamaized.net"
    quiz_iframe_markers: tuple[str, ...] = ("h5p", "fle-rfi")
    quiz_iframe_attributes: tuple[str, ...] = ("src", "data-src")
    title_selector: str = "h1"
    transcript_selectors: tuple[str, ...] = (
        "[class*='transcription']",
        "[id*='transcription']",
        "[class*='transcript']",
    )
    transcript_heading_pattern: str = r"transcri"
    transcript_noise_selectors: tuple[str, ...] = (
        "script",
        "style",
        "button",
        "a[href$='.pdf']",
        "a[href*='.pdf?']",
    )
    transcript_noise_link_pattern: str = r"^\s*(voir|lire|afficher)\s+(plus|la suite)\b"
    min_transcript_chars: int = 100
    extra: dict[str, Any] = field(default_factory=dict)


DEFAULT_MARKUP_PROFILE_ID = "rfi_2025_v1"

PROFILES: dict[str, MarkupProfile] = {
    "rfi_2025_v1": MarkupProfile(id="rfi_2025_v1", label="RFI Français facile (2025)"),
}


def list_profile_ids() -> list[str]:
    return list(PROFILES.keys())


def get_markup_profile(profile_id: str | None) -> MarkupProfile:
    """Retourne le profil demandé ; lève ValueError si l'ID est inconnu."""
    key = profile_id or DEFAULT_MARKUP_PROFILE_ID
    profile = PROFILES.get(key)
    if profile is None:
        available = ", ".join(PROFILES) or "(aucun)"
        raise ValueError(f"Profil de balisage '{key}' introuvable. Profils disponibles : {available}")
    return profile


_TUPLE_FIELDS = {
    f.name
    for f in dataclasses.fields(MarkupProfile)
    if f.name != "listing_patterns" and str(f.type).startswith("tuple")
}


def _listing_pattern_from_dict(data: dict[str, Any]) -> ListingPattern:
    missing = [k for k in ("name", "block", "link", "title") if not data.get(k)]
    if missing:
        raise ValueError(f"Motif de listing incomplet, clés manquantes : {', '.join(missing)}")
    known = {f.name for f in dataclasses.fields(ListingPattern)}
    return ListingPattern(**{k: v for k, v in data.items() if k in known})


def markup_profile_from_dict(data: dict[str, Any], base: MarkupProfile | None = None) -> MarkupProfile:
    """Applique les clés de ``data`` par-dessus ``base`` (profil par défaut si absent)."""
    profile = base or get_markup_profile(data.get("base"))
    known = {f.name for f in dataclasses.fields(MarkupProfile)}
    changes: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in data.items():
        if key == "base":
            continue
        if key not in known:
            extra[key] = value
        elif key == "listing_patterns":
            changes[key] = tuple(_listing_pattern_from_dict(item) for item in value)
        elif key in _TUPLE_FIELDS:
            changes[key] = tuple(value)
        elif key == "min_transcript_chars":
            changes[key] = int(value)
        else:
            changes[key] = value
    if extra:
        changes["extra"] = {**profile.extra, **extra}
    return dataclasses.replace(profile, **changes)


def load_markup_profile(path: Path | str, *, base_id: str | None = None) -> MarkupProfile:
    """
    Charge un profil depuis un fichier TOML. Le profil de départ est la clé ``base``
    du fichier, sinon ``base_id``, sinon le profil par défaut.
    """
    with open(path, "rb") as file_obj:
        data = tomllib.load(file_obj)
    return markup_profile_from_dict(data, get_markup_profile(data.get("base") or base_id))
