from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .config import SeedConfig
from .lib.assertions import AssertionDatabase, Ref
from .lib.bootloader import RecoveryAwareBootloader
from .lib.gadget import KernelCmdline
from .lib.model import Model
from .lib.seed import SNAPS_DIR, SYSTEMS_DIR
from .lib.snapfile import Revision, SnapInfo

logger = logging.getLogger(__name__)

# Returns (info, present); raises on failure.
SnapInfoGetter = Callable[[str], Tuple[Optional[SnapInfo], bool]]

ROLE_SNAPD = "snapd"
ROLE_KERNEL = "kernel"
ROLE_BASE = "base"
ROLE_GADGET = "gadget"
ROLE_ADDITIONAL = "additional"

ESSENTIAL_ROLES = (ROLE_SNAPD, ROLE_KERNEL, ROLE_BASE, ROLE_GADGET)


@dataclass(frozen=True)
class Requirement:
    name: str
    role: str
    presence: str
    snap_id: str = ""
    default_channel: str = ""
    # Type declared by the model entry.
    type: str = ""

    @property
    def essential(self) -> bool:
        return self.role in ESSENTIAL_ROLES


@dataclass(frozen=True)
class SideInfo:
    name: str
    revision: Revision
    version: str
    asserted: bool
    snap_id: str = ""
    digest: str = ""
    size: int = 0
    refs: Tuple[Ref, ...] = ()


@dataclass
class SeedSnap:
    requirement: Requirement
    info: SnapInfo
    side_info: Optional[SideInfo] = None
    # Destination, set once placed.
    path: str = ""

    @property
    def asserted(self) -> bool:
        return self.info.revision.store


@dataclass
class BuildCtx:
    get_info: SnapInfoGetter
    db: AssertionDatabase
    label: str
    model: Model
    bootloader: RecoveryAwareBootloader
    cfg: SeedConfig = field(default_factory=SeedConfig)

    requirements: List[Requirement] = field(default_factory=list)
    snaps: List[SeedSnap] = field(default_factory=list)
    kernel_cmdline: KernelCmdline = field(default_factory=KernelCmdline)

    # Files created or attempted, in order; handed back on every exit path.
    new_files: List[str] = field(default_factory=list)
    # Empty until the writing phase creates the system directory.
    system_dir: str = ""

    @property
    def seed_dir(self) -> Path:
        return Path(self.cfg.seed_dir)

    @property
    def asserted_snaps_dir(self) -> Path:
        return self.seed_dir / SNAPS_DIR

    @property
    def system_dir_path(self) -> Path:
        return self.seed_dir / SYSTEMS_DIR / self.label

    @property
    def recovery_system_dir_in_root(self) -> str:
        return f"/{SYSTEMS_DIR}/{self.label}"

    def ensure_system_dir(self) -> Path:
        p = self.system_dir_path
        if not self.system_dir:
            p.mkdir(parents=True, exist_ok=True)
            self.system_dir = str(p)
            logger.debug("Created system directory %s", self.system_dir)
        return p

    def snap_by_role(self, role: str) -> SeedSnap:
        for sn in self.snaps:
            if sn.requirement.role == role:
                return sn
        raise KeyError(role)
