from __future__ import annotations

import base64
import hashlib
import os

import pytest

from conftest import SNAP_YAMLS, write_snap

from recovery_seed.lib import files
from recovery_seed.lib.files import copy_file_exclusive, copy_file_if_absent
from recovery_seed.lib.snapfile import Revision, read_info, read_snap_file, snap_file_sha3_384


def test_revision_parse_and_str():
    assert str(Revision.parse(4)) == "4"
    assert str(Revision.parse("x2")) == "x2"
    assert Revision.parse("x2") == Revision(-2)
    assert Revision(-1).local and not Revision(-1).store
    assert Revision(0).unset
    with pytest.raises(ValueError):
        Revision.parse("x0")


def test_read_info(tmp_path):
    p = write_snap(tmp_path / "core20.snap", SNAP_YAMLS["core20"])

    info = read_info(str(p), revision=3, snap_id="core20id")

    assert (info.name, info.version, info.type, info.revision) == ("core20", "20.1", "base", Revision(3))
    assert info.filename == "core20_3.snap"
    assert read_snap_file(str(p), "missing") is None


def test_read_info_rejects_snap_id_on_local_revision(tmp_path):
    p = write_snap(tmp_path / "core20.snap", SNAP_YAMLS["core20"])
    with pytest.raises(ValueError, match="cannot carry a snap-id"):
        read_info(str(p), revision="x1", snap_id="core20id")


def test_sha3_384_digest(tmp_path):
    p = tmp_path / "blob"
    p.write_bytes(b"snap content")

    digest, size = snap_file_sha3_384(str(p))

    expected = base64.urlsafe_b64encode(hashlib.sha3_384(b"snap content").digest()).decode().rstrip("=")
    assert digest == expected
    assert len(digest) == 64
    assert size == len(b"snap content")


def test_copy_file_exclusive(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"data")
    dst = tmp_path / "out/dst"

    copy_file_exclusive(str(src), str(dst))
    assert dst.read_bytes() == b"data"
    with pytest.raises(FileExistsError):
        copy_file_exclusive(str(src), str(dst))


def test_copy_file_if_absent(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"data")
    dst = tmp_path / "out/dst"

    assert copy_file_if_absent(str(src), str(dst)) is True
    src.write_bytes(b"changed")
    assert copy_file_if_absent(str(src), str(dst)) is False
    assert dst.read_bytes() == b"data"
    assert sorted(p.name for p in dst.parent.iterdir()) == ["dst"]


def test_copy_file_if_absent_concurrent_publish(tmp_path, monkeypatch):
    src = tmp_path / "src"
    src.write_bytes(b"data")
    dst = tmp_path / "out/dst"
    real_link = os.link
    raced = []
    claims = []

    def link_after_other_builder(tmp, target):
        if not raced:
            raced.append(target)
            # another builder finishes between our exists check and publish
            claims.append(copy_file_if_absent(str(src), str(dst)))
        real_link(tmp, target)

    monkeypatch.setattr(files.os, "link", link_after_other_builder)
    claims.append(copy_file_if_absent(str(src), str(dst)))

    assert claims == [True, False]
    assert dst.read_bytes() == b"data"
    assert sorted(p.name for p in dst.parent.iterdir()) == ["dst"]
