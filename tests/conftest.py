from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from recovery_seed.config import SeedConfig
from recovery_seed.lib.assertions import SERIES, Assertion, AssertionDatabase, Ref
from recovery_seed.lib.model import Model
from recovery_seed.lib.snapfile import Revision, SnapInfo, read_info, snap_file_sha3_384

GADGET_YAML = """\
volumes:
  pc:
    bootloader: grub
"""

SNAP_YAMLS = {
    "pc-kernel": "name: pc-kernel\nversion: 1.0\ntype: kernel\n",
    "pc": "name: pc\nversion: 1.0\ntype: gadget\nbase: core20\n",
    "core20": "name: core20\nversion: 20.1\ntype: base\n",
    "core18": "name: core18\nversion: 18.1\ntype: base\n",
    "snapd": "name: snapd\nversion: 2.2.2\ntype: snapd\n",
    "other-required": "name: other-required\nversion: 1.0\nbase: core20\n",
    "other-present": "name: other-present\nversion: 1.0\nbase: core20\n",
    "other-core18": "name: other-core18\nversion: 1.0\nbase: core18\n",
    "other-unasserted": "name: other-unasserted\nversion: 1.0\nbase: core20\n",
}

SNAP_FILES = {
    "pc": {
        "meta/gadget.yaml": GADGET_YAML,
        "cmdline.extra": "args from gadget",
    },
}


def asserted_snap_id(name: str) -> str:
    return (name + "id" * 16)[:32]


def write_snap(path: Path, snap_yaml: str, files: Optional[Mapping[str, str]] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("meta/snap.yaml", snap_yaml)
        for name, content in (files or {}).items():
            zf.writestr(name, content)
    return path


def account(account_id: str) -> Assertion:
    return Assertion(
        headers={
            "type": "account",
            "account-id": account_id,
            "display-name": account_id,
            "validation": "verified",
        }
    )


class MockBootloader:
    name = "mock"

    def __init__(self, fail: Optional[Exception] = None) -> None:
        self.fail = fail
        self.recovery_system_dir: Optional[str] = None
        self.boot_vars: Optional[Dict[str, str]] = None

    def set_recovery_system_env(self, recovery_system_dir: str, values: Mapping[str, str]) -> None:
        if self.fail is not None:
            raise self.fail
        self.recovery_system_dir = recovery_system_dir
        self.boot_vars = dict(values)


class SnapEnv:
    """Installed snaps known to the info getter, with their assertions."""

    def __init__(self, root: Path) -> None:
        self.installed_dir = root / "installed"
        self.seed_dir = root / "seed"
        self.db = AssertionDatabase()
        self.db.add(account("my-brand"))
        self.infos: Dict[str, SnapInfo] = {}
        self.fail_on: set = set()
        self.calls: List[str] = []

    @property
    def config(self) -> SeedConfig:
        return SeedConfig(raw={"seed": {"dir": str(self.seed_dir)}})

    def make_snap(
        self, name: str, revision: Any, files: Optional[Mapping[str, str]] = None
    ) -> SnapInfo:
        rev = Revision.parse(revision)
        path = write_snap(
            self.installed_dir / f"{name}_{rev}.snap",
            SNAP_YAMLS[name],
            files if files is not None else SNAP_FILES.get(name),
        )
        snap_id = asserted_snap_id(name) if rev.store else ""
        info = read_info(str(path), revision=rev, snap_id=snap_id)
        if rev.store:
            self.assert_snap(info)
        self.infos[name] = info
        return info

    def assert_snap(self, info: SnapInfo) -> None:
        decl = Assertion(
            headers={
                "type": "snap-declaration",
                "series": SERIES,
                "snap-id": info.snap_id,
                "snap-name": info.name,
                "publisher-id": "my-brand",
            }
        )
        if Ref("snap-declaration", (SERIES, info.snap_id)) not in self.db:
            self.db.add(decl)
        digest, size = snap_file_sha3_384(info.path)
        self.db.add(
            Assertion(
                headers={
                    "type": "snap-revision",
                    "snap-sha3-384": digest,
                    "snap-size": size,
                    "snap-id": info.snap_id,
                    "snap-revision": info.revision.n,
                    "developer-id": "my-brand",
                }
            )
        )

    def get_info(self, name: str) -> Tuple[Optional[SnapInfo], bool]:
        self.calls.append(name)
        if name in self.fail_on:
            raise RuntimeError(f'mock failure for snap "{name}"')
        info = self.infos.get(name)
        return info, info is not None

    def seed_path(self, rel: str) -> str:
        return str(self.seed_dir / rel)


def essential_model_snaps() -> List[Dict[str, Any]]:
    return [
        {
            "name": "pc-kernel",
            "id": asserted_snap_id("pc-kernel"),
            "type": "kernel",
            "default-channel": "20",
        },
        {
            "name": "pc",
            "id": asserted_snap_id("pc"),
            "type": "gadget",
            "default-channel": "20",
        },
        {
            "name": "snapd",
            "id": asserted_snap_id("snapd"),
            "type": "snapd",
        },
    ]


def make_model(snaps: List[Dict[str, Any]], **headers: Any) -> Model:
    h: Dict[str, Any] = {
        "brand-id": "my-brand",
        "model": "pc",
        "architecture": "amd64",
        "grade": "dangerous",
        "base": "core20",
        "snaps": snaps,
    }
    h.update(headers)
    return Model.from_headers(h)


@pytest.fixture
def env(tmp_path: Path) -> SnapEnv:
    return SnapEnv(tmp_path)


@pytest.fixture
def bootloader() -> MockBootloader:
    return MockBootloader()


@pytest.fixture
def essential_snaps(env: SnapEnv) -> Dict[str, SnapInfo]:
    return {
        "pc-kernel": env.make_snap("pc-kernel", 1),
        "pc": env.make_snap("pc", 2),
        "core20": env.make_snap("core20", 3),
        "snapd": env.make_snap("snapd", 4),
    }
