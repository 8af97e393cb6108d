from __future__ import annotations

import logging
from typing import List, Optional

from ..build_ctx import (
    ROLE_ADDITIONAL,
    ROLE_BASE,
    ROLE_GADGET,
    ROLE_KERNEL,
    ROLE_SNAPD,
    BuildCtx,
    Requirement,
)
from ..errors import ModelError
from ..lib.model import PRESENCE_REQUIRED, Model, ModelSnap

logger = logging.getLogger(__name__)


def _single_of_type(model: Model, snap_type: str) -> Optional[ModelSnap]:
    found = [s for s in model.snaps if s.type == snap_type]
    if len(found) > 1:
        names = ", ".join(s.name for s in found)
        raise ModelError(f"model {model} declares more than one {snap_type} snap: {names}")
    return found[0] if found else None


def _essential(entry: ModelSnap, role: str) -> Requirement:
    return Requirement(
        name=entry.name,
        role=role,
        presence=PRESENCE_REQUIRED,
        snap_id=entry.snap_id,
        default_channel=entry.default_channel,
        type=entry.type,
    )


def resolve_base(model: Model) -> Requirement:
    """Match the model's base header against its snaps list.

    A base that is not listed is still required; a listed entry with that
    name must be of type base.
    """

    if not model.base:
        raise ModelError(f"model {model} does not declare a base")

    entry = next((s for s in model.snaps if s.name == model.base), None)
    if entry is None:
        return Requirement(name=model.base, role=ROLE_BASE, presence=PRESENCE_REQUIRED, type="base")
    if entry.type != "base":
        raise ModelError(
            f"model {model} base {model.base!r} is listed with type {entry.type!r}, expected 'base'"
        )
    return _essential(entry, ROLE_BASE)


def resolve_requirements(model: Model) -> List[Requirement]:
    """Return snapd, kernel, base and gadget followed by the other model snaps."""

    snapd = _single_of_type(model, "snapd")
    snapd_req = (
        _essential(snapd, ROLE_SNAPD)
        if snapd is not None
        # snapd is always needed even if the model does not list it
        else Requirement(name="snapd", role=ROLE_SNAPD, presence=PRESENCE_REQUIRED, type="snapd")
    )

    essential: List[Requirement] = [snapd_req]
    for role in (ROLE_KERNEL, ROLE_BASE, ROLE_GADGET):
        if role == ROLE_BASE:
            essential.append(resolve_base(model))
            continue
        entry = _single_of_type(model, role)
        if entry is None:
            raise ModelError(f"model {model} does not declare a {role} snap")
        essential.append(_essential(entry, role))

    essential_names = {r.name for r in essential}
    additional = [
        Requirement(
            name=s.name,
            role=ROLE_ADDITIONAL,
            presence=s.presence,
            snap_id=s.snap_id,
            default_channel=s.default_channel,
            type=s.type,
        )
        for s in model.snaps
        if s.name not in essential_names
    ]
    return essential + additional


class ResolveRequirementsStep:
    step_id = "20_resolve_requirements"

    def run(self, ctx: BuildCtx) -> None:
        ctx.requirements = resolve_requirements(ctx.model)
        logger.info(
            "Resolved %d snaps for %s: %s",
            len(ctx.requirements),
            ctx.model,
            ",".join(r.name for r in ctx.requirements),
        )
