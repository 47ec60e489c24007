"""Orchestration du pipeline : run(steps, callbacks), progression, arrêt sur échec."""

from __future__ import annotations

import logging

from francaisfacile.core.pipeline.context import PipelineContext
from francaisfacile.core.pipeline.steps import (
    ErrorCallback,
    LogCallback,
    ProgressCallback,
    Step,
    StepResult,
)

logger = logging.getLogger(__name__)


class PipelineRunner:
    """Exécute une liste d'étapes avec callbacks (progress, log, error)."""

    def run(
        self,
        steps: list[Step],
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> list[StepResult]:
        """
        Exécute les étapes dans l'ordre.
        Une étape en échec (résultat ou exception) arrête la suite et déclenche on_error.
        """
        results: list[StepResult] = []
        total_steps = len(steps)

        def log(level: str, msg: str):
            if on_log:
                on_log(level, msg)
                return
            getattr(logger, level.lower(), logger.info)(msg)

        for i, step in enumerate(steps):
            log("info", f"Running step: {step.name}")

            def emit_progress(step_name: str, percent: float, message: str) -> None:
                if not on_progress:
                    return
                local = max(0.0, min(1.0, float(percent or 0.0)))
                global_percent = (i + local) / total_steps if total_steps > 0 else local
                on_progress(step_name, global_percent, message)

            emit_progress(step.name, 0.0, f"Starting: {step.name}")
            try:
                result = step.run(context, on_progress=emit_progress, on_log=on_log)
            except Exception as e:
                logger.exception("Step %s failed", step.name)
                if on_error:
                    on_error(step.name, e)
                results.append(StepResult(False, str(e), {"step_name": step.name}))
                break
            result.data = dict(result.data or {})
            result.data.setdefault("step_name", step.name)
            results.append(result)
            if not result.success:
                if on_error:
                    on_error(step.name, RuntimeError(result.message))
                log("error", result.message)
                break
            emit_progress(step.name, 1.0, result.message or f"Done: {step.name}")
        return results
