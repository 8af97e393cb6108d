from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..build_ctx import BuildCtx, SeedSnap
from ..errors import DestinationExistsError
from ..lib.files import copy_file_exclusive, copy_file_if_absent
from ..lib.seed import SNAPS_DIR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placement:
    path: Path
    # Shared snaps live in the seed-wide snaps/ directory.
    shared: bool
    # Only probed for shared placements; private collisions fail on create.
    exists: bool = False


def decide_placement(ctx: BuildCtx, sn: SeedSnap) -> Placement:
    info = sn.info
    if sn.asserted:
        p = ctx.asserted_snaps_dir / f"{info.name}_{info.revision}.snap"
        return Placement(path=p, shared=True, exists=p.exists())
    p = ctx.system_dir_path / SNAPS_DIR / f"{info.name}_{info.version}.snap"
    return Placement(path=p, shared=False)


class CopySnapsStep:
    step_id = "40_copy_snaps"

    def run(self, ctx: BuildCtx) -> None:
        for sn in ctx.snaps:
            placement = decide_placement(ctx, sn)
            dst = str(placement.path)
            sn.path = dst

            if placement.shared:
                # Content of a given name and revision never changes.
                if placement.exists:
                    logger.info("Snap %s already present at %s; not copying", sn.info.name, dst)
                    continue
                ctx.new_files.append(dst)
                logger.info("Copying new seed snap %r from %s to %s", sn.info.name, sn.info.path, dst)
                if not copy_file_if_absent(sn.info.path, dst):
                    ctx.new_files.pop()
                continue

            ctx.ensure_system_dir()
            # Recorded before copying so a partial file can be cleaned up.
            ctx.new_files.append(dst)
            logger.info("Copying new seed snap %r from %s to %s", sn.info.name, sn.info.path, dst)
            try:
                copy_file_exclusive(sn.info.path, dst)
            except FileExistsError as e:
                raise DestinationExistsError(dst) from e
