from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..build_ctx import BuildCtx, SeedSnap
from ..lib.seed import SEED_YAML

logger = logging.getLogger(__name__)


def _snap_entry(ctx: BuildCtx, sn: SeedSnap) -> Dict[str, Any]:
    info = sn.info
    entry: Dict[str, Any] = {
        "name": info.name,
        "type": info.type,
        "essential": sn.requirement.essential,
        "asserted": sn.asserted,
        "revision": str(info.revision),
        "version": info.version,
        "file": Path(sn.path).relative_to(ctx.seed_dir).as_posix(),
    }
    if sn.asserted:
        entry["snap-id"] = info.snap_id
        entry["channel"] = sn.requirement.default_channel or ctx.cfg.default_channel
    return entry


def render_manifest(ctx: BuildCtx) -> Dict[str, Any]:
    meta: Dict[str, Any] = {
        "label": ctx.label,
        "model": {
            "brand-id": ctx.model.brand_id,
            "model": ctx.model.model,
            "grade": ctx.model.grade,
        },
        "snaps": [_snap_entry(ctx, sn) for sn in ctx.snaps],
    }
    cmdline = ctx.kernel_cmdline
    if cmdline.full:
        meta["kernel-cmdline"] = {"full": cmdline.full}
    elif cmdline.extra:
        meta["kernel-cmdline"] = {"extra": cmdline.extra}
    return meta


class WriteMetaStep:
    step_id = "55_write_meta"

    def run(self, ctx: BuildCtx) -> None:
        unasserted: List[str] = [sn.info.name for sn in ctx.snaps if not sn.asserted]
        if unasserted:
            logger.warning(
                'system "%s" contains unasserted snaps %s',
                ctx.label,
                ", ".join(f'"{name}"' for name in unasserted),
            )

        system_dir = ctx.ensure_system_dir()
        p = system_dir / SEED_YAML
        p.write_text(yaml.safe_dump(render_manifest(ctx), sort_keys=False), encoding="utf-8")
        logger.info("Wrote seed metadata %s", str(p))
