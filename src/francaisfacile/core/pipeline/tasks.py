"""Tâches concrètes du pipeline : synchronisation (section, tout, catégorie), détails, identifiants."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from francaisfacile.core.identity import plan_id_migration
from francaisfacile.core.models import SyncResult, get_section
from francaisfacile.core.pipeline.context import PipelineContext
from francaisfacile.core.pipeline.steps import LogCallback, ProgressCallback, Step, StepResult
from francaisfacile.core.sync.orchestrator import CrawlError

logger = logging.getLogger(__name__)


def _summary(result: SyncResult) -> str:
    return (
        f"added={result.added} updated={result.updated} "
        f"tags_added={result.tags_added} errors={result.error_count}"
    )


class SyncSectionStep(Step):
    """Crawl complet d'une section (catégories, listings, détails)."""

    name = "sync_section"

    def __init__(self, section_id: str):
        self.section_id = section_id

    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        try:
            section = get_section(self.section_id)
        except ValueError as e:
            return StepResult(False, str(e))
        if on_progress:
            on_progress(self.name, 0.0, f"Crawling {section.name}...")
        try:
            result = context["orchestrator"].crawl_section(section.id)
        except CrawlError as e:
            return StepResult(False, str(e))
        return StepResult(True, f"{section.id.value}: {_summary(result)}", {"sync_result": result})


class SyncAllStep(Step):
    """Crawl de toutes les sections."""

    name = "sync_all"

    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        result = context["orchestrator"].crawl_all()
        return StepResult(True, f"all sections: {_summary(result)}", {"sync_result": result})


class SyncCategoryStep(Step):
    """Synchronisation incrémentale d'une seule page catégorie (URL)."""

    name = "sync_category"

    def __init__(self, category_url: str):
        self.category_url = category_url

    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        url = (self.category_url or "").strip()
        if not url:
            return StepResult(False, "Category URL is empty")
        orchestrator = context["orchestrator"]
        category = orchestrator.adapter.category_ref_from_url(url)
        logger.info(
            "Category %s: section=%s level=%s",
            category.category,
            category.section.value,
            category.level.value,
        )
        result = SyncResult()
        orchestrator.crawl_category(category, result=result)
        return StepResult(True, f"{category.category}: {_summary(result)}", {"sync_result": result})


class RefreshDetailsStep(Step):
    """Relit les pages détail des exercices sans quiz (quiz + audio manquant)."""

    name = "refresh_details"

    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        result = context["orchestrator"].refresh_missing_details()
        return StepResult(True, f"refresh: {_summary(result)}", {"sync_result": result})


class MigrateIdsStep(Step):
    """
    Recalcule les identifiants courts de tous les exercices (ordre de création).
    Sans ``apply``, n'écrit que le plan (``out``) ; avec ``apply``, réassigne en base.
    """

    name = "migrate_ids"

    def __init__(self, *, apply: bool = False, out: Path | None = None):
        self.apply = apply
        self.out = Path(out) if out else None

    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        store = context["store"]
        plan, collisions = plan_id_migration(store.list_ids_and_urls())
        changed = [m for m in plan if m.changed]
        logger.info("ID migration: %d exercises, %d changes, %d collisions", len(plan), len(changed), collisions)
        if self.out:
            self.out.parent.mkdir(parents=True, exist_ok=True)
            mapping = {m.old_id: m.new_id for m in changed}
            self.out.write_text(json.dumps(mapping, indent=2, ensure_ascii=False), encoding="utf-8")
        applied = store.reassign_ids(plan) if self.apply else 0
        return StepResult(
            True,
            f"migrate-ids: total={len(plan)} changed={len(changed)} collisions={collisions} applied={applied}",
            {
                "total": len(plan),
                "changed": len(changed),
                "collisions": collisions,
                "applied": applied,
                "mapping": {m.old_id: m.new_id for m in changed},
            },
        )
