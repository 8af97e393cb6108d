"""Snap files and the metadata read from them.

A snap file is handled as an archive holding ``meta/snap.yaml`` and any
payload files (for example the gadget's ``cmdline.extra``).
"""

from __future__ import annotations

import base64
import hashlib
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

SNAP_YAML = "meta/snap.yaml"

_CHUNK = 1024 * 1024


@dataclass(frozen=True, order=True)
class Revision:
    """A snap revision: positive for the store, negative for local installs."""

    n: int

    @property
    def store(self) -> bool:
        return self.n > 0

    @property
    def local(self) -> bool:
        return self.n < 0

    @property
    def unset(self) -> bool:
        return self.n == 0

    def __str__(self) -> str:
        if self.local:
            return f"x{-self.n}"
        return str(self.n)

    @classmethod
    def parse(cls, value: Any) -> "Revision":
        if isinstance(value, Revision):
            return value
        if isinstance(value, int):
            return cls(value)
        s = str(value).strip()
        if s.startswith("x"):
            n = int(s[1:])
            if n <= 0:
                raise ValueError(f"invalid local revision {value!r}")
            return cls(-n)
        return cls(int(s))


@dataclass(frozen=True)
class SnapInfo:
    name: str
    revision: Revision
    version: str
    path: str
    type: str = "app"
    snap_id: str = ""
    base: str = ""

    @property
    def filename(self) -> str:
        return f"{self.name}_{self.revision}.snap"


def read_snap_file(path: str, name: str) -> Optional[bytes]:
    """Return the content of ``name`` inside the snap, or None if missing."""
    with zipfile.ZipFile(path) as zf:
        try:
            return zf.read(name)
        except KeyError:
            return None


def read_snap_yaml(path: str) -> Dict[str, Any]:
    data = read_snap_file(path, SNAP_YAML)
    if data is None:
        raise ValueError(f"{path}: missing {SNAP_YAML}")
    meta = yaml.safe_load(data.decode("utf-8")) or {}
    if not isinstance(meta, dict):
        raise ValueError(f"{path}: {SNAP_YAML} must be a mapping")
    for key in ("name", "version"):
        if not meta.get(key):
            raise ValueError(f"{path}: {SNAP_YAML} is missing {key!r}")
    return meta


def read_info(path: str, *, revision: Any, snap_id: str = "") -> SnapInfo:
    """Build a SnapInfo from a snap file plus its side information."""

    meta = read_snap_yaml(path)
    rev = Revision.parse(revision)
    if not rev.store and snap_id:
        raise ValueError(f"snap {meta['name']!r} with revision {rev} cannot carry a snap-id")
    return SnapInfo(
        name=str(meta["name"]),
        revision=rev,
        version=str(meta["version"]),
        path=str(path),
        type=str(meta.get("type") or "app"),
        snap_id=snap_id,
        base=str(meta.get("base") or ""),
    )


def snap_file_sha3_384(path: str) -> Tuple[str, int]:
    """Digest of a snap file as used by snap-revision assertions.

    Returns the unpadded urlsafe base64 SHA3-384 and the file size.
    """

    h = hashlib.sha3_384()
    size = 0
    with Path(path).open("rb") as f:
        while True:
            chunk = f.read(_CHUNK)
            if not chunk:
                break
            h.update(chunk)
            size += len(chunk)
    digest = base64.urlsafe_b64encode(h.digest()).decode("ascii").rstrip("=")
    return digest, size
