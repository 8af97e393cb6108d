from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .build_ctx import BuildCtx

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single stage of recovery system creation."""

    step_id: str

    def run(self, ctx: BuildCtx) -> None:
        ...


@dataclass(frozen=True)
class BuildResult:
    new_files: List[str] = field(default_factory=list)
    system_dir: str = ""
    error: Optional[Exception] = None
    ran_steps: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def run_pipeline(*, ctx: BuildCtx, steps: Sequence[Step]) -> BuildResult:
    """Run steps in order, stopping at the first failure.

    The files recorded on the context and the system directory are returned
    whether or not a step failed; cleanup is left to the caller.
    """

    ran: List[str] = []
    for step in steps:
        logger.debug("[%s] running step %s", ctx.label, step.step_id)
        try:
            step.run(ctx)
        except Exception as e:
            logger.error("[%s] step %s failed: %s", ctx.label, step.step_id, e)
            return BuildResult(
                new_files=list(ctx.new_files),
                system_dir=ctx.system_dir,
                error=e,
                ran_steps=ran,
            )
        ran.append(step.step_id)

    return BuildResult(new_files=list(ctx.new_files), system_dir=ctx.system_dir, ran_steps=ran)
