"""Point d'entrée ligne de commande : synchronisation et maintenance de la base d'exercices."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from francaisfacile.core.acquisition import format_http_options_summary, resolve_http_options_for_config
from francaisfacile.core.config import SyncConfig, load_sync_config
from francaisfacile.core.models import SECTIONS, SyncResult
from francaisfacile.core.pipeline.context import PipelineContext
from francaisfacile.core.pipeline.runner import PipelineRunner
from francaisfacile.core.pipeline.steps import Step
from francaisfacile.core.pipeline.tasks import (
    MigrateIdsStep,
    RefreshDetailsStep,
    SyncAllStep,
    SyncCategoryStep,
    SyncSectionStep,
)
from francaisfacile.core.storage.db import ExerciseDB
from francaisfacile.core.sync.fetcher import HttpPageFetcher
from francaisfacile.core.sync.orchestrator import CrawlError, CrawlOrchestrator
from francaisfacile.core.utils.logging import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_BAD_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="francaisfacile",
        description="Synchronise les exercices RFI Français facile dans une base SQLite locale.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Fichier TOML de configuration")
    parser.add_argument("--db", type=Path, default=None, help="Base SQLite (remplace db_path)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Logs DEBUG")
    sub = parser.add_subparsers(dest="command", required=True)

    p_sections = sub.add_parser("sections", help="Lister les sections (et leurs catégories)")
    p_sections.add_argument("--categories", action="store_true", help="Découvrir les catégories en ligne")

    p_sync = sub.add_parser("sync", help="Crawl d'une section ou de toutes")
    p_sync.add_argument("--section", default=None, help="ID de section (défaut : toutes)")

    p_cat = sub.add_parser("sync-category", help="Synchronisation incrémentale d'une catégorie")
    p_cat.add_argument("url", help="URL de la page catégorie")

    sub.add_parser("refresh-details", help="Compléter quiz/audio des exercices sans quiz")

    p_mig = sub.add_parser("migrate-ids", help="Recalculer les identifiants courts")
    p_mig.add_argument("--apply", action="store_true", help="Appliquer le plan en base")
    p_mig.add_argument("--out", type=Path, default=None, help="Écrire le mapping ancien -> nouvel id (JSON)")
    return parser


def _steps_for(args: argparse.Namespace) -> list[Step]:
    if args.command == "sync":
        return [SyncSectionStep(args.section)] if args.section else [SyncAllStep()]
    if args.command == "sync-category":
        return [SyncCategoryStep(args.url)]
    if args.command == "refresh-details":
        return [RefreshDetailsStep()]
    if args.command == "migrate-ids":
        return [MigrateIdsStep(apply=args.apply, out=args.out)]
    raise ValueError(f"Unknown command: {args.command}")


def _json_ready(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        out[key] = value.to_dict() if isinstance(value, SyncResult) else value
    return out


def _build_context(config: SyncConfig, *, init_store: bool = True) -> PipelineContext:
    options = resolve_http_options_for_config(config)
    logger.info("HTTP: %s", format_http_options_summary(options))
    store = ExerciseDB(config.db_path)
    if init_store:
        store.init()
    orchestrator = CrawlOrchestrator(store, HttpPageFetcher(options), config=config)
    return {"config": config, "store": store, "orchestrator": orchestrator}


def _list_sections(context: PipelineContext, with_categories: bool) -> int:
    payload = []
    for section in SECTIONS.values():
        entry: dict[str, Any] = {"id": section.id.value, "name": section.name, "url": section.url}
        if with_categories:
            try:
                categories = context["orchestrator"].discover_categories(section.id)
            except CrawlError as e:
                logger.error("%s", e)
                return EXIT_FAILED
            entry["categories"] = [
                {"category": c.category, "level": c.level.value, "url": c.url} for c in categories
            ]
        payload.append(entry)
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_sync_config(args.config)
    except (OSError, ValueError) as e:
        # tomllib.TOMLDecodeError hérite de ValueError
        print(f"Configuration invalide : {e}", file=sys.stderr)
        return EXIT_BAD_CONFIG
    if args.db:
        config.db_path = args.db

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, config.log_file)
    try:
        context = _build_context(config, init_store=args.command != "sections")
    except (OSError, ValueError) as e:
        print(f"Configuration invalide : {e}", file=sys.stderr)
        return EXIT_BAD_CONFIG

    if args.command == "sections":
        return _list_sections(context, args.categories)

    results = PipelineRunner().run(_steps_for(args), context)
    for result in results:
        sync_result = result.sync_result
        if sync_result is not None and sync_result.error_count:
            logger.warning("%d item errors (first %d reported)", sync_result.error_count, len(sync_result.errors))
        payload = {"success": result.success, "message": result.message, **_json_ready(result.data or {})}
        print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
    if not results or not all(r.success for r in results):
        return EXIT_FAILED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
