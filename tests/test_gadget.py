from __future__ import annotations

import pytest

from conftest import write_snap

from recovery_seed.errors import GadgetError
from recovery_seed.lib.gadget import KernelCmdline, gadget_kernel_cmdline

GADGET = "name: pc\nversion: 1.0\ntype: gadget\n"


def test_extra_cmdline(tmp_path):
    p = write_snap(tmp_path / "pc.snap", GADGET, {"cmdline.extra": "# comment\nfoo=bar\n\n  baz\n"})
    assert gadget_kernel_cmdline(str(p)) == KernelCmdline(extra="foo=bar baz")


def test_full_cmdline(tmp_path):
    p = write_snap(tmp_path / "pc.snap", GADGET, {"cmdline.full": "console=ttyS0 panic=-1"})
    assert gadget_kernel_cmdline(str(p)) == KernelCmdline(full="console=ttyS0 panic=-1")


def test_no_cmdline(tmp_path):
    p = write_snap(tmp_path / "pc.snap", GADGET)
    assert gadget_kernel_cmdline(str(p)) == KernelCmdline()


def test_full_and_extra_are_exclusive(tmp_path):
    p = write_snap(tmp_path / "pc.snap", GADGET, {"cmdline.full": "a", "cmdline.extra": "b"})
    with pytest.raises(GadgetError, match="cannot provide both"):
        gadget_kernel_cmdline(str(p))


def test_unreadable_gadget(tmp_path):
    p = tmp_path / "pc.snap"
    p.write_bytes(b"not a snap")
    with pytest.raises(GadgetError, match="cannot read gadget"):
        gadget_kernel_cmdline(str(p))
