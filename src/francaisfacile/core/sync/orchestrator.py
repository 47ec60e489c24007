"""Orchestration d'un crawl : catégories -> pages de listing -> détail -> identifiant -> stockage."""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Callable
from typing import Any

from francaisfacile.core.adapters.markup import get_markup_profile, load_markup_profile
from francaisfacile.core.adapters.rfi import RfiAdapter
from francaisfacile.core.config import SyncConfig
from francaisfacile.core.identity import IdentityMap, resolve_id
from francaisfacile.core.models import (
    SECTIONS,
    CategoryRef,
    ExerciseDetail,
    ExerciseRecord,
    ExerciseStub,
    SectionId,
    SyncAction,
    SyncActionKind,
    SyncResult,
    get_section,
)
from francaisfacile.core.storage.db import ExerciseStore, RefreshableStore
from francaisfacile.core.sync.fetcher import PageFetcher

logger = logging.getLogger(__name__)


class CrawlError(Exception):
    """Crawl impossible : page index de la section injoignable."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


def adapter_for_config(config: SyncConfig) -> RfiAdapter:
    """Adapteur RFI avec base_url et profil de balisage (fichier TOML éventuel) de la config."""
    if config.markup_file:
        markup = load_markup_profile(config.markup_file, base_id=config.markup_profile_id)
    else:
        markup = get_markup_profile(config.markup_profile_id)
    return RfiAdapter(base_url=config.base_url, markup=markup)


def _error_message(url: str, exc: BaseException) -> str:
    return f"{url}: {exc.__class__.__name__}: {exc}"


class CrawlOrchestrator:
    """
    Crawl séquentiel et poli d'une section ou d'une catégorie.

    Les échecs d'une page, d'un détail ou d'un appel au store sont consignés dans
    le SyncResult et n'interrompent pas le crawl ; seule l'impossibilité de joindre
    la page index d'une section lève CrawlError.
    """

    def __init__(
        self,
        store: ExerciseStore,
        fetcher: PageFetcher,
        *,
        adapter: RfiAdapter | None = None,
        config: SyncConfig | None = None,
        pause: Callable[[float], Any] = time.sleep,
    ):
        self.store = store
        self.fetcher = fetcher
        self.config = config or SyncConfig()
        self.adapter = adapter or adapter_for_config(self.config)
        self._pause_fn = pause

    def _pause(self, seconds: float) -> None:
        if seconds > 0:
            self._pause_fn(seconds)

    def _record_error(self, result: SyncResult, url: str, exc: BaseException) -> None:
        message = _error_message(url, exc)
        logger.warning("Sync error: %s", message)
        result.add_error(message)

    def _load_identity(self) -> IdentityMap:
        """Mapping id -> URL amorcé depuis les exercices déjà persistés."""
        return IdentityMap.from_pairs(self.store.list_ids_and_urls())

    # --- Points d'entrée ---

    def discover_categories(self, section_id: SectionId | str) -> list[CategoryRef]:
        """Catégories de la section ; CrawlError si la page index est injoignable."""
        section = get_section(section_id)
        try:
            return self.adapter.discover_categories(section.id, self.fetcher)
        except Exception as exc:
            url = self.adapter.section_index_url(section.id)
            raise CrawlError(f"Section index unreachable: {_error_message(url, exc)}", url) from exc

    def crawl_section(self, section_id: SectionId | str) -> SyncResult:
        """Crawl complet d'une section ; retourne le bilan (ajouts, mises à jour, erreurs)."""
        section = get_section(section_id)
        categories = self.discover_categories(section.id)
        logger.info("Section %s: %d categories", section.id.value, len(categories))

        result = SyncResult()
        identity = self._load_identity()
        seen_categories: set[str] = set()
        seen_urls: set[str] = set()
        for category in categories:
            if category.url in seen_categories:
                continue
            seen_categories.add(category.url)
            self._crawl_category(category, identity, result, seen_urls)
        logger.info(
            "Section %s done: added=%d updated=%d errors=%d",
            section.id.value,
            result.added,
            result.updated,
            result.error_count,
        )
        return result

    def crawl_category(self, category: CategoryRef, *, result: SyncResult | None = None) -> list[SyncAction]:
        """
        Crawl incrémental d'une seule catégorie. Retourne les actions appliquées ;
        erreurs et compteurs vont dans ``result`` s'il est fourni.
        """
        return self._crawl_category(
            category,
            self._load_identity(),
            result if result is not None else SyncResult(),
            set(),
        )

    def crawl_all(self) -> SyncResult:
        """Crawl de toutes les sections ; une section injoignable est une erreur, pas un arrêt."""
        result = SyncResult()
        for section_id in SECTIONS:
            try:
                result.merge(self.crawl_section(section_id))
            except CrawlError as exc:
                logger.error("%s", exc)
                result.add_error(str(exc))
        return result

    # --- Catégorie ---

    def _crawl_category(
        self,
        category: CategoryRef,
        identity: IdentityMap,
        result: SyncResult,
        seen_urls: set[str],
    ) -> list[SyncAction]:
        stubs = self._collect_stubs(category, result)
        actions: list[SyncAction] = []
        new_stubs = 0
        for stub in stubs:
            if stub.source_url in seen_urls:
                continue
            seen_urls.add(stub.source_url)
            new_stubs += 1
            try:
                stub_actions = self._sync_stub(stub, identity, result)
            except Exception as exc:
                self._record_error(result, stub.source_url, exc)
                continue
            for action in stub_actions:
                result.record(action)
            actions.extend(stub_actions)
        logger.info(
            "Category %s (%s): %d stubs, %d new in this crawl",
            category.category,
            category.url,
            len(stubs),
            new_stubs,
        )
        return actions

    def _collect_stubs(self, category: CategoryRef, result: SyncResult) -> list[ExerciseStub]:
        """Parcourt les pages du listing jusqu'à has_more=False ou au plafond de pages."""
        stubs: list[ExerciseStub] = []
        max_pages = max(1, self.config.max_pages_per_category)
        for page_number in range(1, max_pages + 1):
            url = self.adapter.page_url(category, page_number)
            try:
                html = self.fetcher.fetch(url)
                listing = self.adapter.parse_listing_page(html, category, page_number)
            except Exception as exc:
                self._record_error(result, url, exc)
                break
            finally:
                self._pause(self.config.listing_delay_s)
            logger.debug("%s: %d stubs, has_more=%s", url, len(listing.stubs), listing.has_more)
            stubs.extend(listing.stubs)
            if not listing.has_more or not listing.stubs:
                break
        else:
            logger.warning("Category %s: stopped at page cap (%d)", category.url, max_pages)
        return stubs

    # --- Exercice ---

    def _fetch_detail(self, url: str) -> ExerciseDetail:
        try:
            html = self.fetcher.fetch(url)
        finally:
            self._pause(self.config.detail_delay_s)
        return self.adapter.parse_detail(html)

    def _sync_stub(self, stub: ExerciseStub, identity: IdentityMap, result: SyncResult) -> list[SyncAction]:
        existing = self.store.find_by_source_url(stub.source_url)
        if existing is None:
            return [self._create_exercise(stub, identity, result)]
        return self._update_exercise(existing, stub)

    def _create_exercise(self, stub: ExerciseStub, identity: IdentityMap, result: SyncResult) -> SyncAction:
        detail: ExerciseDetail | None = None
        try:
            detail = self._fetch_detail(stub.source_url)
        except Exception as exc:
            # L'exercice est quand même créé depuis les données du listing.
            self._record_error(result, stub.source_url, exc)

        known_id = identity.id_for(stub.source_url)
        exercise_id = resolve_id(stub.source_url, identity)
        record = ExerciseRecord.from_stub(exercise_id, stub, detail)
        try:
            self.store.create(record)
        except Exception:
            if known_id is None:
                del identity[exercise_id]
            raise
        logger.debug("Created %s for %s", exercise_id, stub.source_url)
        return SyncAction(
            kind=SyncActionKind.CREATE,
            exercise_id=exercise_id,
            source_url=stub.source_url,
            record=record,
            category=stub.category,
        )

    def _update_exercise(self, existing: ExerciseRecord, stub: ExerciseStub) -> list[SyncAction]:
        """Rafraîchit les champs modifiables du listing ; l'identifiant n'est jamais changé."""
        fields: dict[str, Any] = {}
        if stub.thumbnail_url is not None:
            fields["thumbnail_url"] = stub.thumbnail_url
        if stub.published_at is not None:
            fields["published_at"] = stub.published_at
        self.store.update(stub.source_url, fields)
        record = dataclasses.replace(existing, categories=list(existing.categories), **fields)
        actions = [
            SyncAction(
                kind=SyncActionKind.UPDATE,
                exercise_id=existing.id,
                source_url=stub.source_url,
                record=record,
                category=stub.category,
            )
        ]
        if stub.category not in existing.categories:
            self.store.add_category_tag(existing.id, stub.category)
            record.categories.append(stub.category)
            actions.append(
                SyncAction(
                    kind=SyncActionKind.ADD_CATEGORY,
                    exercise_id=existing.id,
                    source_url=stub.source_url,
                    record=record,
                    category=stub.category,
                )
            )
        return actions

    # --- Rafraîchissement du détail ---

    def refresh_missing_details(self) -> SyncResult:
        """
        Relit la page détail des exercices sans URL de quiz : complète le quiz et,
        s'il manque, l'audio.
        """
        target: RefreshableStore = self.store  # type: ignore[assignment]
        result = SyncResult()
        records = target.list_missing_quiz()
        logger.info("Refreshing details of %d exercises without quiz", len(records))
        for record in records:
            try:
                detail = self._fetch_detail(record.source_url)
                fields: dict[str, Any] = {}
                if detail.h5p_embed_url:
                    fields["h5p_embed_url"] = detail.h5p_embed_url
                if detail.audio_url and not record.audio_url:
                    fields["audio_url"] = detail.audio_url
                if not fields:
                    continue
                target.update(record.source_url, fields)
            except Exception as exc:
                self._record_error(result, record.source_url, exc)
                continue
            result.record(
                SyncAction(
                    kind=SyncActionKind.UPDATE,
                    exercise_id=record.id,
                    source_url=record.source_url,
                    record=dataclasses.replace(record, **fields),
                )
            )
        return result

    def refresh_exercise(self, exercise_id: str) -> ExerciseRecord | None:
        """
        Relit la page détail d'un exercice ; les champs trouvés remplacent ceux stockés.
        Retourne None si l'identifiant est inconnu. Les erreurs réseau sont propagées.
        """
        target: RefreshableStore = self.store  # type: ignore[assignment]
        record = target.get(exercise_id)
        if record is None:
            return None
        detail = self._fetch_detail(record.source_url)
        fields: dict[str, Any] = {
            name: value
            for name, value in (
                ("title", detail.title),
                ("level", detail.level),
                ("audio_url", detail.audio_url),
                ("h5p_embed_url", detail.h5p_embed_url),
                ("transcript", detail.transcript),
            )
            if value
        }
        if fields:
            target.update(record.source_url, fields)
        return dataclasses.replace(record, **fields)
