from __future__ import annotations

import logging
from typing import Set

from ..build_ctx import ROLE_ADDITIONAL, ROLE_GADGET, BuildCtx, Requirement, SeedSnap
from ..errors import (
    CreateSystemError,
    EssentialSnapInfoError,
    EssentialSnapMissingError,
    MissingBaseError,
    ModelError,
    NonEssentialSnapInfoError,
    RequiredSnapMissingError,
)
from ..lib.model import PRESENCE_OPTIONAL
from ..lib.snapfile import SnapInfo

logger = logging.getLogger(__name__)


def _check_info(req: Requirement, info: SnapInfo) -> None:
    if info.name != req.name:
        raise CreateSystemError(f"snap information for {req.name!r} describes {info.name!r}")
    if req.role != ROLE_ADDITIONAL and info.type != req.role:
        raise CreateSystemError(
            f"essential snap {req.name!r} has type {info.type!r}, expected {req.role!r}"
        )
    if req.snap_id and info.snap_id and req.snap_id != info.snap_id:
        raise CreateSystemError(
            f"snap {req.name!r} has snap-id {info.snap_id}, model expects {req.snap_id}"
        )


def check_bases(ctx: BuildCtx) -> None:
    """Every snap's base must be part of the system."""

    gadget = ctx.snap_by_role(ROLE_GADGET).info
    if gadget.base and gadget.base != ctx.model.base:
        raise ModelError(
            f"cannot use gadget snap because its base {gadget.base!r} is different "
            f"from model base {ctx.model.base!r}"
        )

    names: Set[str] = {sn.info.name for sn in ctx.snaps}
    for sn in ctx.snaps:
        base = sn.info.base
        if not base or base == "none" or sn.info.type in ("base", "snapd"):
            continue
        if base not in names:
            raise MissingBaseError(
                f'cannot add snap "{sn.info.name}" without also adding its base "{base}" explicitly'
            )


class AcquireSnapsStep:
    step_id = "25_acquire_snaps"

    def run(self, ctx: BuildCtx) -> None:
        seen: Set[str] = set()
        for req in ctx.requirements:
            try:
                info, present = ctx.get_info(req.name)
            except Exception as e:
                if req.essential:
                    raise EssentialSnapInfoError(e) from e
                raise NonEssentialSnapInfoError(e) from e

            if not present or info is None:
                if req.essential:
                    raise EssentialSnapMissingError(req.name, req.role)
                if req.presence == PRESENCE_OPTIONAL:
                    logger.info("Optional snap %r is not present; leaving it out", req.name)
                    continue
                raise RequiredSnapMissingError(req.name)

            _check_info(req, info)
            if info.path in seen:
                continue
            seen.add(info.path)
            ctx.snaps.append(SeedSnap(requirement=req, info=info))

        check_bases(ctx)
        logger.info("Acquired %d snaps", len(ctx.snaps))
