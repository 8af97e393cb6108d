from __future__ import annotations

import logging
import re

from ..build_ctx import BuildCtx
from ..errors import CreateSystemError, NotRecoveryCapableError

logger = logging.getLogger(__name__)

# Labels become directory names under systems/.
VALID_LABEL = re.compile(r"^[a-zA-Z0-9](?:-?[a-zA-Z0-9])+$")


class CheckModelStep:
    step_id = "10_check_model"

    def run(self, ctx: BuildCtx) -> None:
        if not ctx.model.recovery_capable:
            raise NotRecoveryCapableError(
                f"cannot create a system for model {ctx.model}: not a recovery-capable model "
                f"(grade {ctx.model.grade})"
            )
        if not VALID_LABEL.match(ctx.label):
            raise CreateSystemError(f"invalid recovery system label {ctx.label!r}")

        logger.info("Creating recovery system with label %r for %s", ctx.label, ctx.model)
