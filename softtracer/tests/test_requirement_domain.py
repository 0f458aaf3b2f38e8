import pytest

from softtracer.domain.requirement import (
    CreateRequirementsCommand,
    Requirement,
    attach_children,
    map_command,
    rollup_completion,
    to_bool,
)
from softtracer.services.requirements_svc import command_from_dict, requirement_to_dict


def test_map_command_assigns_preorder_ids():
    cmds = [
        CreateRequirementsCommand(
            name="login",
            children=[CreateRequirementsCommand(name="form"), CreateRequirementsCommand(name="oauth")],
        ),
        CreateRequirementsCommand(name="reports"),
    ]
    reqs = map_command(cmds, 7)

    assert [r.id for r in reqs] == [7, 10]
    assert [c.id for c in reqs[0].children] == [8, 9]
    assert all(c.parent_id == 7 for c in reqs[0].children)
    assert reqs[1].parent_id == 0 and reqs[1].children == []


def test_map_command_keeps_top_level_parent_id():
    reqs = map_command([CreateRequirementsCommand(name="sub", parent_id=3)], 5)
    assert reqs[0].id == 5
    assert reqs[0].parent_id == 3


def test_command_from_dict_nested():
    cmd = command_from_dict({"name": "a", "children": [{"name": "b", "completed": True}]})
    assert cmd.description == ""
    assert cmd.children[0].name == "b"
    assert cmd.children[0].completed is True
    assert cmd.children[0].children is None


@pytest.mark.parametrize("raw,expected", [(1, True), (0, False), ("1", True), ("False", False), ("true", True), (True, True)])
def test_to_bool(raw, expected):
    assert to_bool(raw) is expected


def test_to_bool_rejects_garbage():
    with pytest.raises(ValueError):
        to_bool("maybe")


def test_rollup_completion():
    r = Requirement(id=1, name="x", completed=True)
    rollup_completion(r, 0, 0)
    assert r.completed is True  # no tasks: stored value kept

    rollup_completion(r, 3, 2)
    assert r.completed is False

    rollup_completion(r, 2, 2)
    assert r.completed is True


def test_attach_children_propagates_parent_completion():
    parent = Requirement(id=1, name="p", completed=True)
    child = Requirement(id=2, name="c", parent_id=1)
    orphan = Requirement(id=3, name="o", parent_id=99)
    attach_children([parent, child, orphan])

    assert parent.children == [child]
    assert child.completed is True
    assert orphan.completed is False


def test_attach_children_does_not_push_incomplete_parent_down():
    parent = Requirement(id=1, name="p", completed=False)
    child = Requirement(id=2, name="c", parent_id=1, completed=True)
    attach_children([parent, child])
    assert child.completed is True
    assert parent.completed is False


def test_attach_children_skips_self_parented_row():
    loop = Requirement(id=1, name="loop", parent_id=1, completed=True)
    attach_children([loop])
    assert loop.children == []


def test_requirement_to_dict_stops_on_parent_loop():
    a = Requirement(id=1, name="a", parent_id=2)
    b = Requirement(id=2, name="b", parent_id=1)
    attach_children([a, b])

    out = requirement_to_dict(a)
    assert [c["id"] for c in out["children"]] == [2]
    assert out["children"][0]["children"] == []
