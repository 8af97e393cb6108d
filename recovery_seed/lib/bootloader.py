from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Mapping, Protocol

logger = logging.getLogger(__name__)

GRUBENV_SIZE = 1024
GRUBENV_HEADER = "# GRUB Environment Block\n"


class RecoveryAwareBootloader(Protocol):
    """Bootloader able to keep a per recovery system environment."""

    name: str

    def set_recovery_system_env(self, recovery_system_dir: str, values: Mapping[str, str]) -> None:
        ...


def render_grubenv(values: Mapping[str, str]) -> bytes:
    """Render a fixed-size GRUB environment block."""

    body = GRUBENV_HEADER
    for key, value in values.items():
        if "=" in key or "\n" in key or "\n" in value:
            raise ValueError(f"invalid grubenv entry {key!r}={value!r}")
        body += f"{key}={value}\n"
    data = body.encode("utf-8")
    if len(data) > GRUBENV_SIZE:
        raise ValueError(f"grubenv content exceeds {GRUBENV_SIZE} bytes")
    return data + b"#" * (GRUBENV_SIZE - len(data))


def parse_grubenv(data: bytes) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for line in data.decode("utf-8").splitlines():
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if sep:
            values[key] = value
    return values


class GrubEnvBootloader:
    """Keeps each recovery system's variables in ``<system dir>/grubenv``."""

    name = "grub"

    def __init__(self, seed_dir: str) -> None:
        self.seed_dir = Path(seed_dir)

    def _env_path(self, recovery_system_dir: str) -> Path:
        rel = recovery_system_dir.lstrip("/")
        if not rel or ".." in Path(rel).parts:
            raise ValueError(f"invalid recovery system dir: {recovery_system_dir!r}")
        return self.seed_dir / rel / "grubenv"

    def set_recovery_system_env(self, recovery_system_dir: str, values: Mapping[str, str]) -> None:
        p = self._env_path(recovery_system_dir)
        if not p.parent.is_dir():
            raise FileNotFoundError(f"recovery system directory {p.parent} does not exist")
        p.write_bytes(render_grubenv(values))
        logger.info("Wrote recovery system environment: %s", str(p))

    def get_recovery_system_env(self, recovery_system_dir: str) -> Dict[str, str]:
        return parse_grubenv(self._env_path(recovery_system_dir).read_bytes())
