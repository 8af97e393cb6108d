from __future__ import annotations

import logging

from ..build_ctx import ROLE_GADGET, BuildCtx, SideInfo
from ..errors import InternalError, NoAssertionsError
from ..lib.assertions import SERIES, AssertionDatabase, NotFoundError
from ..lib.gadget import gadget_kernel_cmdline
from ..lib.snapfile import Revision, SnapInfo, snap_file_sha3_384

logger = logging.getLogger(__name__)


def derive_side_info(info: SnapInfo, db: AssertionDatabase) -> SideInfo:
    """Bind a snap to its assertions, or describe it from local data.

    For asserted snaps the file digest must match a snap-revision issued for
    the snap's own snap-id. A mismatch means the file is not what its
    revision claims and is reported as an internal error.
    """

    if not info.revision.store:
        return SideInfo(
            name=info.name,
            revision=info.revision,
            version=info.version,
            asserted=False,
        )

    if not info.snap_id:
        raise InternalError(f"asserted snap {info.name!r} has no snap-id")

    digest, size = snap_file_sha3_384(info.path)
    try:
        rev = db.find("snap-revision", {"snap-sha3-384": digest})
        if str(rev.header("snap-id")) != info.snap_id:
            raise NotFoundError("snap-revision", {"snap-sha3-384": digest, "snap-id": info.snap_id})
        decl = db.find("snap-declaration", {"series": SERIES, "snap-id": info.snap_id})
    except NotFoundError as e:
        raise NoAssertionsError(info.snap_id) from e

    asserted_rev = Revision.parse(rev.header("snap-revision"))
    if asserted_rev != info.revision:
        raise InternalError(
            f"snap {info.name!r} has revision {info.revision} but its file is asserted "
            f"as revision {asserted_rev}"
        )

    return SideInfo(
        name=info.name,
        revision=info.revision,
        version=info.version,
        asserted=True,
        snap_id=info.snap_id,
        digest=digest,
        size=size,
        refs=(decl.ref, rev.ref),
    )


class DeriveSideInfoStep:
    step_id = "30_derive_side_info"

    def run(self, ctx: BuildCtx) -> None:
        for sn in ctx.snaps:
            sn.side_info = derive_side_info(sn.info, ctx.db)
            logger.debug(
                "Side info for %s: revision=%s asserted=%s",
                sn.info.name,
                sn.side_info.revision,
                sn.side_info.asserted,
            )

        ctx.kernel_cmdline = gadget_kernel_cmdline(ctx.snap_by_role(ROLE_GADGET).info.path)
