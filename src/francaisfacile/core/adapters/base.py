"""Interface des adapters source + registre."""

from __future__ import annotations

from typing import Protocol

from francaisfacile.core.models import CategoryRef, ExerciseDetail, ListingPage, SectionId


class SourceAdapter(Protocol):
    """Protocol pour un adapteur de source (catégories, listings, pages exercice)."""

    id: str

    def discover_categories_from_html(self, html: str, section_id: SectionId) -> list[CategoryRef]:
        """Parse la page index d'une section et retourne les catégories (ordre du document)."""
        ...

    def parse_listing_page(self, html: str, category: CategoryRef, page_number: int) -> ListingPage:
        """Extrait les exercices d'une page de listing et indique s'il existe une page suivante."""
        ...

    def parse_detail(self, html: str) -> ExerciseDetail:
        """Extrait audio, quiz, niveau, titre et transcription ; champs absents = None."""
        ...

    def page_url(self, category: CategoryRef, page_number: int) -> str:
        """URL de la page ``page_number`` (1-based) du listing d'une catégorie."""
        ...

    def category_ref_from_url(self, url: str) -> CategoryRef:
        """Construit une CategoryRef depuis la seule URL d'une page catégorie."""
        ...


class AdapterRegistry:
    """Registre des adapters disponibles."""

    _adapters: dict[str, SourceAdapter] = {}

    @classmethod
    def register(cls, adapter: SourceAdapter) -> None:
        cls._adapters[adapter.id] = adapter

    @classmethod
    def get(cls, source_id: str) -> SourceAdapter | None:
        """Retourne l'adapteur correspondant ou None si non trouvé."""
        return cls._adapters.get(source_id)

    @classmethod
    def get_or_raise(cls, source_id: str) -> SourceAdapter:
        """Retourne l'adapteur correspondant ou lève une exception claire."""
        adapter = cls._adapters.get(source_id)
        if not adapter:
            available = ", ".join(cls._adapters.keys()) if cls._adapters else "(aucun)"
            raise ValueError(
                f"Adapteur '{source_id}' introuvable. Adapteurs disponibles : {available}"
            )
        return adapter

    @classmethod
    def list_ids(cls) -> list[str]:
        return list(cls._adapters.keys())
