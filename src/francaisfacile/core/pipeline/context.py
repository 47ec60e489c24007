"""Contrat typé du contexte passé au pipeline (runner et steps)."""

from __future__ import annotations

from typing import TypedDict

from francaisfacile.core.config import SyncConfig
from francaisfacile.core.storage.db import ExerciseDB
from francaisfacile.core.sync.orchestrator import CrawlOrchestrator


class PipelineContext(TypedDict):
    """
    Contexte passé à chaque étape du pipeline et au runner.

    Clés :
        config : réglages de synchronisation (SyncConfig).
        store : base des exercices (ExerciseDB, initialisée).
        orchestrator : CrawlOrchestrator branché sur ce store et un fetcher HTTP.
    """

    config: SyncConfig
    store: ExerciseDB
    orchestrator: CrawlOrchestrator
