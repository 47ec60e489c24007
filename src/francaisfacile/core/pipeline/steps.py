"""Étapes du pipeline de synchronisation : contrat Step, résultat, callbacks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from francaisfacile.core.models import SyncResult
from francaisfacile.core.pipeline.context import PipelineContext

ProgressCallback = Callable[[str, float, str], None]  # step_name, percent, message
LogCallback = Callable[[str, str], None]  # level, message
ErrorCallback = Callable[[str, Exception], None]  # step_name, exception


@dataclass
class StepResult:
    """Issue d'une étape ; ``data`` porte le SyncResult ou le bilan de migration."""

    success: bool
    message: str = ""
    data: dict[str, Any] | None = None

    @property
    def sync_result(self) -> SyncResult | None:
        return (self.data or {}).get("sync_result")


class Step(ABC):
    """Une commande de synchronisation ou de maintenance de la base d'exercices."""

    name: str = ""

    @abstractmethod
    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        """Exécute l'étape avec le store et l'orchestrateur du contexte."""
        ...
