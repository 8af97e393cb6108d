from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from typing import Optional

from ..errors import GadgetError
from .snapfile import read_snap_file

logger = logging.getLogger(__name__)

CMDLINE_FULL = "cmdline.full"
CMDLINE_EXTRA = "cmdline.extra"


@dataclass(frozen=True)
class KernelCmdline:
    """Kernel command line provided by the gadget; at most one is set."""

    full: str = ""
    extra: str = ""


def _parse_cmdline(data: Optional[bytes], name: str) -> str:
    if data is None:
        return ""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise GadgetError(f"cannot decode gadget {name}: {e}") from e
    args = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        args.append(line)
    return " ".join(args)


def gadget_kernel_cmdline(gadget_path: str) -> KernelCmdline:
    try:
        full_raw = read_snap_file(gadget_path, CMDLINE_FULL)
        extra_raw = read_snap_file(gadget_path, CMDLINE_EXTRA)
    except (OSError, ValueError, zipfile.BadZipFile) as e:
        raise GadgetError(f"cannot read gadget {gadget_path}: {e}") from e

    if full_raw is not None and extra_raw is not None:
        raise GadgetError(
            f"gadget {gadget_path} cannot provide both {CMDLINE_FULL} and {CMDLINE_EXTRA}"
        )
    cmdline = KernelCmdline(
        full=_parse_cmdline(full_raw, CMDLINE_FULL),
        extra=_parse_cmdline(extra_raw, CMDLINE_EXTRA),
    )
    logger.debug("Gadget kernel command line: %s", cmdline)
    return cmdline
