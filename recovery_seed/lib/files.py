from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def copy_file_exclusive(src: str, dst: str) -> None:
    """Copy src to dst, failing with FileExistsError if dst exists."""

    s = Path(src)
    d = Path(dst)
    if not s.exists():
        raise FileNotFoundError(src)

    d.parent.mkdir(parents=True, exist_ok=True)
    with s.open("rb") as fin, d.open("xb") as fout:
        shutil.copyfileobj(fin, fout)


def copy_file_if_absent(src: str, dst: str) -> bool:
    """Copy src to dst unless dst already exists.

    The content is written to a temporary file next to dst and hard linked
    into place, so dst is either absent or complete and only one of several
    concurrent callers publishes it. Returns True if this call produced dst.
    """

    s = Path(src)
    d = Path(dst)
    if not s.exists():
        raise FileNotFoundError(src)
    if d.exists():
        return False

    d.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{d.name}.", dir=str(d.parent))
    try:
        with os.fdopen(fd, "wb") as fout, s.open("rb") as fin:
            shutil.copyfileobj(fin, fout)
        try:
            os.link(tmp, d)
        except FileExistsError:
            # Another builder placed the same asset meanwhile.
            logger.debug("Lost race for %s; keeping existing file", str(d))
            return False
        return True
    finally:
        Path(tmp).unlink(missing_ok=True)
