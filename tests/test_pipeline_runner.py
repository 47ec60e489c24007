"""Tests PipelineRunner: progression globale, bornage du pourcentage, arrêt sur échec."""

from __future__ import annotations

from francaisfacile.core.pipeline.runner import PipelineRunner
from francaisfacile.core.pipeline.steps import Step, StepResult


class _ProgressStep(Step):
    name = "progress_step"

    def __init__(self, marks: list[float]):
        self._marks = marks

    def run(self, context, *, on_progress=None, on_log=None) -> StepResult:
        if on_progress:
            for p in self._marks:
                on_progress(self.name, p, f"p={p}")
        return StepResult(True, "ok")


def test_pipeline_runner_reports_global_monotonic_progress() -> None:
    runner = PipelineRunner()
    emitted: list[float] = []
    results = runner.run(
        [_ProgressStep([0.0, 0.5, 1.0]), _ProgressStep([0.0, 0.5, 1.0])],
        context={},
        on_progress=lambda _s, p, _m: emitted.append(p),
    )
    assert len(results) == 2
    assert emitted[0] == 0.0
    assert emitted[-1] == 1.0
    assert all(emitted[i] <= emitted[i + 1] for i in range(len(emitted) - 1))


def test_pipeline_runner_clamps_out_of_range_progress() -> None:
    emitted: list[float] = []
    PipelineRunner().run(
        [_ProgressStep([-2.0, 2.0])],
        context={},
        on_progress=lambda _s, p, _m: emitted.append(p),
    )
    assert min(emitted) >= 0.0
    assert max(emitted) <= 1.0


class _DataStep(Step):
    name = "data_step"

    def __init__(self, data=None):
        self._data = data

    def run(self, context, *, on_progress=None, on_log=None) -> StepResult:
        return StepResult(True, "ok", self._data)


def test_pipeline_runner_adds_step_name_to_result_data() -> None:
    results = PipelineRunner().run([_DataStep({"meta": 1})], context={})
    assert results[0].data == {"meta": 1, "step_name": "data_step"}


def test_pipeline_runner_preserves_existing_step_name_data() -> None:
    results = PipelineRunner().run([_DataStep({"step_name": "custom_step"})], context={})
    assert results[0].data["step_name"] == "custom_step"


class _FailingStep(Step):
    name = "failing_step"

    def run(self, context, *, on_progress=None, on_log=None) -> StepResult:
        return StepResult(False, "boom")


class _RaisingStep(Step):
    name = "raising_step"

    def run(self, context, *, on_progress=None, on_log=None) -> StepResult:
        raise RuntimeError("kaput")


def test_pipeline_runner_stops_after_failed_result() -> None:
    errors: list[tuple[str, str]] = []
    logs: list[tuple[str, str]] = []
    results = PipelineRunner().run(
        [_FailingStep(), _DataStep()],
        context={},
        on_log=lambda level, msg: logs.append((level, msg)),
        on_error=lambda name, exc: errors.append((name, str(exc))),
    )
    assert [r.success for r in results] == [False]
    assert errors == [("failing_step", "boom")]
    assert ("error", "boom") in logs


def test_pipeline_runner_turns_exception_into_failed_result() -> None:
    errors: list[str] = []
    results = PipelineRunner().run(
        [_RaisingStep(), _DataStep()],
        context={},
        on_error=lambda name, exc: errors.append(name),
    )
    assert len(results) == 1
    assert results[0].success is False
    assert results[0].message == "kaput"
    assert results[0].data == {"step_name": "raising_step"}
    assert errors == ["raising_step"]
