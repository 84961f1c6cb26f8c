from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .config import ProvisionConfig
from .lib.command import CommandError
from .lib.host import Host

logger = logging.getLogger(__name__)


@dataclass
class StepContext:
    host: Host
    cfg: ProvisionConfig
    state: Dict[str, Any]
    # Filled in by the runner as steps finish; the final step reports on it.
    results: List["StepResult"] = field(default_factory=list)


@dataclass(frozen=True)
class StepResult:
    step_id: str
    changed: bool
    message: str = ""


@dataclass(frozen=True)
class StepFailure:
    step_id: str
    error: str
    returncode: int = 1


class Step(Protocol):
    """A single idempotent step: check, then act only if needed."""

    step_id: str
    description: str

    def run(self, ctx: StepContext) -> StepResult:
        ...


@dataclass(frozen=True)
class PipelineResult:
    results: List[StepResult]
    failure: Optional[StepFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def ran_steps(self) -> List[str]:
        return [r.step_id for r in self.results if r.changed]

    @property
    def noop_steps(self) -> List[str]:
        return [r.step_id for r in self.results if not r.changed]

    @property
    def failed_step(self) -> Optional[str]:
        return self.failure.step_id if self.failure else None

    @property
    def exit_code(self) -> int:
        return 0 if self.failure is None else self.failure.returncode


def _failure(step_id: str, exc: Exception) -> StepFailure:
    rc = 1
    if isinstance(exc, CommandError) and exc.returncode > 0:
        rc = exc.returncode
    return StepFailure(step_id=step_id, error=str(exc), returncode=rc)


def run_pipeline(
    ctx: StepContext,
    steps: Sequence[Step],
    *,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    skip: Sequence[str] = (),
) -> PipelineResult:
    """Run steps in order; stop at the first one that fails."""

    ids = [s.step_id for s in steps]
    for name, value in (("start_at", start_at), ("stop_after", stop_after)):
        if value is not None and value not in ids:
            raise ValueError(f"{name}: unknown step {value!r}")

    started = start_at is None
    exe = ctx.state.setdefault("execution", {})

    for step in steps:
        if not started:
            if step.step_id == start_at:
                started = True
            else:
                continue

        if step.step_id in skip:
            logger.info("Skipping step %s (disabled in config)", step.step_id)
        else:
            exe["current_step"] = step.step_id
            logger.info("Running step %s: %s", step.step_id, step.description)
            try:
                result = step.run(ctx)
            except Exception as e:
                logger.exception("Step %s failed", step.step_id)
                failure = _failure(step.step_id, e)
                exe["failed_step"] = step.step_id
                return PipelineResult(results=list(ctx.results), failure=failure)

            ctx.results.append(result)
            if result.changed:
                logger.info("Step %s changed: %s", step.step_id, result.message)
            else:
                logger.info("Step %s already satisfied: %s", step.step_id, result.message)

        if stop_after is not None and step.step_id == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    exe["current_step"] = None
    return PipelineResult(results=list(ctx.results))
