from __future__ import annotations

import logging
from typing import List, Optional

from .build_ctx import BuildCtx, SnapInfoGetter
from .config import SeedConfig
from .lib.assertions import AssertionDatabase
from .lib.bootloader import RecoveryAwareBootloader
from .lib.model import Model
from .pipeline import BuildResult, Step, run_pipeline
from .steps import (
    AcquireSnapsStep,
    CheckModelStep,
    CopySnapsStep,
    DeriveSideInfoStep,
    MakeBootableStep,
    ResolveRequirementsStep,
    WriteAssertionsStep,
    WriteMetaStep,
)

logger = logging.getLogger(__name__)


def build_steps() -> List[Step]:
    return [
        CheckModelStep(),
        ResolveRequirementsStep(),
        AcquireSnapsStep(),
        DeriveSideInfoStep(),
        CopySnapsStep(),
        WriteAssertionsStep(),
        WriteMetaStep(),
        MakeBootableStep(),
    ]


def create_system(
    get_info: SnapInfoGetter,
    db: AssertionDatabase,
    label: str,
    model: Model,
    *,
    bootloader: RecoveryAwareBootloader,
    config: Optional[SeedConfig] = None,
) -> BuildResult:
    """Create recovery system ``label`` for ``model`` from already validated snaps.

    Snaps are looked up through ``get_info``; asserted ones must have their
    assertions in ``db``. Nothing is rolled back on failure: the result
    carries the files written or attempted so far and the system directory
    (empty if it was never created), for the caller to clean up.
    """

    ctx = BuildCtx(
        get_info=get_info,
        db=db,
        label=label,
        model=model,
        bootloader=bootloader,
        cfg=config or SeedConfig(),
    )
    result = run_pipeline(ctx=ctx, steps=build_steps())
    if result.ok:
        logger.info("Created recovery system %r (%d new files)", label, len(result.new_files))
    return result
