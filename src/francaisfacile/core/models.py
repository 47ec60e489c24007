"""Modèle de données : dataclasses typées pour sections, catégories, exercices, synchronisations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class Level(str, Enum):
    """Niveau CECRL d'un exercice (C1 et C2 partagent une seule catégorie)."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1C2 = "C1C2"

    @classmethod
    def from_token(cls, token: str | None) -> "Level | None":
        """Convertit un jeton (a2, C1, c1c2...) en Level ; None si inconnu."""
        if not token:
            return None
        t = token.strip().upper()
        if t in ("C1", "C2"):
            return cls.C1C2
        try:
            return cls(t)
        except ValueError:
            return None


DEFAULT_LEVEL = Level.A2


class SectionId(str, Enum):
    """Sections du site source, explorées indépendamment."""

    COMPRENDRE_ACTUALITE = "comprendre-actualite"
    COMMUNIQUER_QUOTIDIEN = "communiquer-quotidien"


@dataclass(frozen=True)
class SectionInfo:
    """Une section du site : identifiant, libellé, URL de la page index."""

    id: SectionId
    name: str
    url: str


RFI_BASE_URL = "https://francaisfacile.rfi.fr"

SECTIONS: dict[SectionId, SectionInfo] = {
    SectionId.COMPRENDRE_ACTUALITE: SectionInfo(
        id=SectionId.COMPRENDRE_ACTUALITE,
        name="Comprendre l'actualité",
        url=f"{RFI_BASE_URL}/fr/comprendre-actualit%C3%A9-fran%C3%A7ais/",
    ),
    SectionId.COMMUNIQUER_QUOTIDIEN: SectionInfo(
        id=SectionId.COMMUNIQUER_QUOTIDIEN,
        name="Communiquer au quotidien",
        url=f"{RFI_BASE_URL}/fr/communiquer-au-quotidien/",
    ),
}


def get_section(section_id: str | SectionId) -> SectionInfo:
    """Retourne la section correspondante ou lève une exception claire."""
    try:
        key = SectionId(section_id)
    except ValueError:
        available = ", ".join(s.value for s in SectionId)
        raise ValueError(
            f"Section '{section_id}' inconnue. Sections disponibles : {available}"
        ) from None
    return SECTIONS[key]


@dataclass(frozen=True)
class CategoryRef:
    """Page catégorie à parcourir (listing paginé) avec ses métadonnées."""

    url: str
    section: SectionId
    level: Level
    category: str


@dataclass
class ExerciseStub:
    """Exercice partiel extrait d'une page de listing, avant enrichissement."""

    title: str
    level: Level
    category: str
    section: SectionId
    source_url: str
    """URL absolue : clé naturelle pour la déduplication et l'identifiant court."""
    thumbnail_url: str | None = None
    published_at: date | None = None


@dataclass
class ListingPage:
    """Résultat du parsing d'une page de listing."""

    stubs: list[ExerciseStub] = field(default_factory=list)
    has_more: bool = False


@dataclass
class ExerciseDetail:
    """Champs extraits d'une page exercice ; None signifie « non trouvé »."""

    audio_url: str | None = None
    h5p_embed_url: str | None = None
    level: Level | None = None
    title: str | None = None
    transcript: str | None = None


@dataclass
class ExerciseRecord:
    """Exercice terminé (persisté ou prêt à l'être)."""

    id: str
    title: str
    section: SectionId
    level: Level
    source_url: str
    audio_url: str | None = None
    h5p_embed_url: str | None = None
    thumbnail_url: str | None = None
    transcript: str | None = None
    published_at: date | None = None
    categories: list[str] = field(default_factory=list)

    @classmethod
    def from_stub(
        cls, exercise_id: str, stub: ExerciseStub, detail: ExerciseDetail | None = None
    ) -> "ExerciseRecord":
        """Construit l'enregistrement ; les champs présents du détail priment sur le stub."""
        record = cls(
            id=exercise_id,
            title=stub.title,
            section=stub.section,
            level=stub.level,
            source_url=stub.source_url,
            thumbnail_url=stub.thumbnail_url,
            published_at=stub.published_at,
            categories=[stub.category],
        )
        if detail is None:
            return record
        if detail.title:
            record.title = detail.title
        if detail.level is not None:
            record.level = detail.level
        if detail.audio_url:
            record.audio_url = detail.audio_url
        if detail.h5p_embed_url:
            record.h5p_embed_url = detail.h5p_embed_url
        if detail.transcript:
            record.transcript = detail.transcript
        return record

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "section": self.section.value,
            "level": self.level.value,
            "source_url": self.source_url,
            "audio_url": self.audio_url,
            "h5p_embed_url": self.h5p_embed_url,
            "thumbnail_url": self.thumbnail_url,
            "transcript": self.transcript,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "categories": list(self.categories),
        }


class SyncActionKind(str, Enum):
    """Type d'action émise par une synchronisation."""

    CREATE = "create"
    UPDATE = "update"
    ADD_CATEGORY = "add_category"


@dataclass
class SyncAction:
    """Action appliquée au stockage pendant un crawl."""

    kind: SyncActionKind
    exercise_id: str
    source_url: str
    record: ExerciseRecord | None = None
    category: str | None = None


MAX_REPORTED_ERRORS = 100


@dataclass
class SyncResult:
    """Bilan d'une synchronisation : compteurs + erreurs par élément (bornées)."""

    added: int = 0
    updated: int = 0
    tags_added: int = 0
    errors: list[str] = field(default_factory=list)
    error_count: int = 0

    def add_error(self, message: str) -> None:
        self.error_count += 1
        if len(self.errors) < MAX_REPORTED_ERRORS:
            self.errors.append(message)

    def record(self, action: SyncAction) -> None:
        if action.kind == SyncActionKind.CREATE:
            self.added += 1
        elif action.kind == SyncActionKind.UPDATE:
            self.updated += 1
        elif action.kind == SyncActionKind.ADD_CATEGORY:
            self.tags_added += 1

    def merge(self, other: "SyncResult") -> None:
        self.added += other.added
        self.updated += other.updated
        self.tags_added += other.tags_added
        for message in other.errors:
            if len(self.errors) < MAX_REPORTED_ERRORS:
                self.errors.append(message)
        self.error_count += other.error_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": self.added,
            "updated": self.updated,
            "tags_added": self.tags_added,
            "errors": list(self.errors),
            "error_count": self.error_count,
        }
