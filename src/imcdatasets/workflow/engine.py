"""Pipeline: runs an ordered list of stages against a context."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable

from imcdatasets.core.exceptions import StageError
from imcdatasets.workflow.stage import PipelineStage, StageResult

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Summary of a complete pipeline run."""

    context: dict[str, Any] = field(default_factory=dict)
    stage_results: dict[str, StageResult] = field(default_factory=dict)
    total_elapsed_seconds: float = 0.0

    @property
    def stages_completed(self) -> int:
        return sum(1 for r in self.stage_results.values() if r.status == "completed")


class Pipeline:
    """Executes stages strictly in order.

    For each stage the pipeline:
    1. Checks the stage's inputs are present in the context
    2. Executes the stage and checks it produced its declared outputs
    3. Runs the stage's validation on the updated context
    4. Stops at the first failure by raising StageError
    """

    def __init__(self, stages: Sequence[PipelineStage]) -> None:
        self._stages = list(stages)
        names = [s.name for s in self._stages]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate stage names: {', '.join(dupes)}")

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self._stages]

    def validate(self, initial: Sequence[str] = ()) -> list[str]:
        """Check every stage input is provided by ``initial`` or an earlier stage.

        Returns:
            List of error messages. Empty list means valid.
        """
        errors: list[str] = []
        available = set(initial)
        for stage in self._stages:
            for key in stage.inputs:
                if key not in available:
                    errors.append(f"Stage '{stage.name}' needs '{key}' before it is produced")
            available.update(stage.outputs)
        return errors

    def run(
        self,
        context: Mapping[str, Any] | None = None,
        progress_callback: Callable[[str, str], None] | None = None,
    ) -> PipelineResult:
        """Execute all stages in order.

        Args:
            context: Initial named values (paths, configuration).
            progress_callback: Called with (stage_name, status_msg).

        Returns:
            PipelineResult with the final context.

        Raises:
            ValueError: If stage inputs cannot be satisfied.
            StageError: If a stage or its validation fails.
        """
        current: dict[str, Any] = dict(context or {})
        errors = self.validate(initial=current.keys())
        if errors:
            raise ValueError(f"Pipeline validation failed: {'; '.join(errors)}")

        result = PipelineResult()
        start_time = time.monotonic()

        for stage in self._stages:
            if progress_callback:
                progress_callback(stage.name, "running")
            logger.info("Stage %s started", stage.name)
            stage_start = time.monotonic()
            try:
                produced = stage.execute(current)
                missing = [k for k in stage.outputs if k not in produced]
                if missing:
                    raise ValueError(f"did not produce {', '.join(missing)}")
                current = {**current, **produced}
                stage.validate(current)
            except Exception as exc:
                elapsed = time.monotonic() - stage_start
                result.stage_results[stage.name] = StageResult(
                    status="failed", message=str(exc), elapsed_seconds=elapsed,
                )
                logger.error("Stage %s failed after %.2fs: %s", stage.name, elapsed, exc)
                if progress_callback:
                    progress_callback(stage.name, f"failed: {exc}")
                raise StageError(stage.name, exc) from exc

            elapsed = time.monotonic() - stage_start
            result.stage_results[stage.name] = StageResult(
                status="completed",
                outputs_produced=tuple(produced),
                elapsed_seconds=elapsed,
            )
            logger.info("Stage %s completed in %.2fs", stage.name, elapsed)
            if progress_callback:
                progress_callback(stage.name, "completed")

        result.context = current
        result.total_elapsed_seconds = time.monotonic() - start_time
        return result
