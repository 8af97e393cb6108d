"""Read back a recovery system seed.

Layout below the seed root::

    snaps/<name>_<revision>.snap                 asserted snaps, shared
    systems/<label>/snaps/<name>_<version>.snap  unasserted snaps
    systems/<label>/assertions                   assertion stream
    systems/<label>/seed.yaml                    manifest
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from .assertions import AssertionDatabase, Batch, InvalidAssertionError, NotFoundError
from .gadget import KernelCmdline
from .model import Model
from .snapfile import Revision, snap_file_sha3_384

logger = logging.getLogger(__name__)

SNAPS_DIR = "snaps"
SYSTEMS_DIR = "systems"
ASSERTIONS_FILE = "assertions"
SEED_YAML = "seed.yaml"

ESSENTIAL_TYPES = ("snapd", "kernel", "base", "gadget")


class SeedError(ValueError):
    pass


@dataclass(frozen=True)
class SeedSnapEntry:
    name: str
    type: str
    essential: bool
    asserted: bool
    revision: Revision
    version: str
    path: Path
    snap_id: str = ""
    channel: str = ""


def _entry_from_manifest(seed_dir: Path, raw: Any) -> SeedSnapEntry:
    if not isinstance(raw, dict):
        raise SeedError(f"{SEED_YAML}: snap entries must be mappings")
    try:
        return SeedSnapEntry(
            name=str(raw["name"]),
            type=str(raw.get("type") or "app"),
            essential=bool(raw.get("essential", False)),
            asserted=bool(raw.get("asserted", False)),
            revision=Revision.parse(raw["revision"]),
            version=str(raw.get("version") or ""),
            path=seed_dir / str(raw["file"]),
            snap_id=str(raw.get("snap-id") or ""),
            channel=str(raw.get("channel") or ""),
        )
    except (KeyError, ValueError) as e:
        raise SeedError(f"{SEED_YAML}: invalid snap entry {raw!r}: {e}") from e


class Seed:
    def __init__(self, seed_dir: str, label: str) -> None:
        self.seed_dir = Path(seed_dir)
        self.label = label
        self.system_dir = self.seed_dir / SYSTEMS_DIR / label
        self.model: Optional[Model] = None
        self.db: Optional[AssertionDatabase] = None
        self.snaps: List[SeedSnapEntry] = []
        self.kernel_cmdline = KernelCmdline()

    def load_assertions(
        self,
        db: AssertionDatabase,
        commit_to: Optional[Callable[[Batch], None]] = None,
    ) -> None:
        p = self.system_dir / ASSERTIONS_FILE
        try:
            text = p.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise SeedError(f"system {self.label!r} has no assertions") from e

        batch = Batch()
        try:
            refs = batch.add_stream(text)
        except (InvalidAssertionError, yaml.YAMLError) as e:
            raise SeedError(f"cannot read assertions of system {self.label!r}: {e}") from e

        models = [r for r in refs if r.type == "model"]
        if len(models) != 1:
            raise SeedError(
                f"system {self.label!r} must have exactly one model assertion, found {len(models)}"
            )

        try:
            if commit_to is None:
                batch.commit_to(db)
            else:
                commit_to(batch)
        except InvalidAssertionError as e:
            raise SeedError(f"cannot commit assertions of system {self.label!r}: {e}") from e

        model = db.get(models[0])
        if model is None:
            raise SeedError(f"model assertion of system {self.label!r} was not committed")
        self.model = Model(model)
        self.db = db

    def _load_manifest(self) -> Dict[str, Any]:
        p = self.system_dir / SEED_YAML
        try:
            meta = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except FileNotFoundError as e:
            raise SeedError(f"system {self.label!r} has no {SEED_YAML}") from e
        if not isinstance(meta, dict):
            raise SeedError(f"{p}: must contain a mapping")
        return meta

    def _verify_asserted(self, entry: SeedSnapEntry) -> None:
        assert self.db is not None
        digest, size = snap_file_sha3_384(str(entry.path))
        try:
            rev = self.db.find("snap-revision", {"snap-sha3-384": digest})
        except NotFoundError as e:
            raise SeedError(f"snap {entry.name!r} ({entry.path}) has no matching snap-revision") from e
        if (
            str(rev.header("snap-id")) != entry.snap_id
            or int(rev.header("snap-size")) != size
            or Revision.parse(rev.header("snap-revision")) != entry.revision
        ):
            raise SeedError(f"snap {entry.name!r} does not match its snap-revision assertion")

    def load_meta(self) -> None:
        if self.model is None:
            raise SeedError("assertions must be loaded before the seed metadata")

        meta = self._load_manifest()
        if str(meta.get("label")) != self.label:
            raise SeedError(f"{SEED_YAML} label {meta.get('label')!r} does not match {self.label!r}")
        model_meta = meta.get("model") or {}
        if (
            model_meta.get("brand-id") != self.model.brand_id
            or model_meta.get("model") != self.model.model
        ):
            raise SeedError(f"{SEED_YAML} does not describe model {self.model}")

        raw_snaps = meta.get("snaps")
        if not isinstance(raw_snaps, list) or not raw_snaps:
            raise SeedError(f"{SEED_YAML}: snaps must be a non-empty list")

        snaps = [_entry_from_manifest(self.seed_dir, raw) for raw in raw_snaps]
        for entry in snaps:
            if not entry.path.is_file():
                raise SeedError(f"snap {entry.name!r} is missing: {entry.path}")
            if entry.asserted:
                self._verify_asserted(entry)

        for role in ESSENTIAL_TYPES:
            matches = [s for s in snaps if s.essential and s.type == role]
            if role == "base":
                matches = [s for s in matches if s.name == self.model.base]
            if not matches:
                raise SeedError(f"system {self.label!r} has no essential {role} snap")

        cmdline = meta.get("kernel-cmdline") or {}
        self.kernel_cmdline = KernelCmdline(
            full=str(cmdline.get("full") or ""),
            extra=str(cmdline.get("extra") or ""),
        )
        self.snaps = snaps
        logger.debug("Loaded seed %s with %d snaps", self.label, len(snaps))

    @property
    def uses_snapd_snap(self) -> bool:
        return any(s.type == "snapd" for s in self.snaps)


def open_seed(seed_dir: str, label: str) -> Seed:
    seed = Seed(seed_dir, label)
    if not seed.system_dir.is_dir():
        raise SeedError(f"system {label!r} not found under {seed_dir}")
    return seed
