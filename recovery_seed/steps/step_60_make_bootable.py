from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from ..build_ctx import ROLE_KERNEL, BuildCtx
from ..errors import BootEnvError

logger = logging.getLogger(__name__)


def recovery_boot_vars(ctx: BuildCtx) -> Dict[str, str]:
    kernel = ctx.snap_by_role(ROLE_KERNEL)
    kernel_path = "/" + Path(kernel.path).relative_to(ctx.seed_dir).as_posix()
    return {
        "snapd_full_cmdline_args": ctx.kernel_cmdline.full,
        "snapd_extra_cmdline_args": ctx.kernel_cmdline.extra,
        "snapd_recovery_kernel": kernel_path,
    }


class MakeBootableStep:
    step_id = "60_make_bootable"

    def run(self, ctx: BuildCtx) -> None:
        values = recovery_boot_vars(ctx)
        try:
            ctx.bootloader.set_recovery_system_env(ctx.recovery_system_dir_in_root, values)
        except Exception as e:
            raise BootEnvError(
                f'cannot make candidate recovery system "{ctx.label}" bootable: {e}'
            ) from e

        logger.info(
            "Recovery system %s bootable with %s (kernel %s)",
            ctx.recovery_system_dir_in_root,
            ctx.bootloader.name,
            values["snapd_recovery_kernel"],
        )
