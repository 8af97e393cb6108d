from __future__ import annotations

import logging
from typing import List

from ..build_ctx import BuildCtx
from ..errors import CreateSystemError
from ..lib.assertions import Assertion, NotFoundError, Ref, encode_stream, fetch_with_prerequisites
from ..lib.seed import ASSERTIONS_FILE

logger = logging.getLogger(__name__)


def collect_assertions(ctx: BuildCtx) -> List[Assertion]:
    """Model, its brand account and the assertions of every asserted snap."""

    refs: List[Ref] = list(ctx.model.assertion.prerequisites())
    for sn in ctx.snaps:
        if sn.side_info is not None and sn.side_info.asserted:
            refs.extend(sn.side_info.refs)

    try:
        collected = fetch_with_prerequisites(ctx.db, refs)
    except NotFoundError as e:
        raise CreateSystemError(f"cannot collect assertions for system {ctx.label!r}: {e}") from e

    # The model handed to us need not be stored in the database.
    model_ref = ctx.model.assertion.ref
    return [a for a in collected if a.ref != model_ref] + [ctx.model.assertion]


class WriteAssertionsStep:
    step_id = "50_write_assertions"

    def run(self, ctx: BuildCtx) -> None:
        assertions = collect_assertions(ctx)
        system_dir = ctx.ensure_system_dir()
        p = system_dir / ASSERTIONS_FILE
        p.write_text(encode_stream(assertions), encoding="utf-8")
        logger.info("Wrote %d assertions to %s", len(assertions), str(p))
