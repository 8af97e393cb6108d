from __future__ import annotations

import pytest

from conftest import essential_model_snaps, make_model

from recovery_seed.errors import ModelError
from recovery_seed.steps.step_20_resolve_requirements import resolve_base, resolve_requirements


def test_essential_snaps_come_first_in_fixed_order():
    model = make_model(
        [{"name": "extra-1", "presence": "optional"}]
        + essential_model_snaps()
        + [{"name": "extra-2"}]
    )

    reqs = resolve_requirements(model)

    assert [(r.name, r.role) for r in reqs] == [
        ("snapd", "snapd"),
        ("pc-kernel", "kernel"),
        ("core20", "base"),
        ("pc", "gadget"),
        ("extra-1", "additional"),
        ("extra-2", "additional"),
    ]
    assert [r.essential for r in reqs] == [True, True, True, True, False, False]
    assert reqs[4].presence == "optional"
    assert reqs[5].presence == "required"
    assert reqs[1].default_channel == "20"
    assert [r.type for r in reqs] == ["snapd", "kernel", "base", "gadget", "app", "app"]


def test_snapd_is_implied():
    snaps = [s for s in essential_model_snaps() if s["type"] != "snapd"]
    reqs = resolve_requirements(make_model(snaps))
    assert reqs[0].name == "snapd"
    assert reqs[0].snap_id == ""
    assert reqs[0].type == "snapd"


def test_base_is_matched_against_listed_base_entry():
    model = make_model(
        essential_model_snaps()
        + [
            {"name": "core18", "type": "base"},
            {"name": "core20", "id": "core20idididididididididididididi", "type": "base", "default-channel": "latest/edge"},
        ]
    )

    base = resolve_base(model)
    assert base.snap_id == "core20idididididididididididididi"
    assert base.default_channel == "latest/edge"
    # another base stays an additional snap
    assert [r.name for r in resolve_requirements(model) if r.role == "additional"] == ["core18"]


def test_base_listed_with_wrong_type_is_an_error():
    model = make_model(essential_model_snaps() + [{"name": "core20", "type": "app"}])
    with pytest.raises(ModelError, match="expected 'base'"):
        resolve_base(model)


def test_model_without_base_is_an_error():
    with pytest.raises(ModelError, match="does not declare a base"):
        resolve_requirements(make_model(essential_model_snaps(), base=None))


def test_missing_kernel_is_named():
    snaps = [s for s in essential_model_snaps() if s["type"] != "kernel"]
    with pytest.raises(ModelError, match="does not declare a kernel snap"):
        resolve_requirements(make_model(snaps))
