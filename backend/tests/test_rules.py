import datetime as dt
from decimal import Decimal
from types import SimpleNamespace as NS

import pytest

from smartproject.core.errors import RuleViolation
from smartproject.services.wbs.rules import (
    ALLOWED_CHILDREN,
    WbsNode,
    check_budget_tree,
    check_not_own_descendant,
    check_parent_child,
    check_retype_attachments,
    check_rollup,
    check_shape,
    check_type_change,
    check_work_package_depth,
    derive_activity_duration,
    has_work_package_ancestor,
    next_child_code,
    parent_code,
)


def _item(id, parent_id, type):
    return NS(id=id, parent_id=parent_id, type=type)


def test_allowed_children_table():
    assert ALLOWED_CHILDREN[None] == {"Summary"}
    assert ALLOWED_CHILDREN["Summary"] == {"Summary", "WorkPackage"}
    assert ALLOWED_CHILDREN["WorkPackage"] == {"Activity"}
    assert not ALLOWED_CHILDREN["Activity"]


def test_activity_never_directly_under_summary():
    with pytest.raises(RuleViolation, match="must have a 'WorkPackage' in between"):
        check_parent_child(_item(1, None, "Summary"), "Activity")


@pytest.mark.parametrize("parent_type,child_type", [
    ("WorkPackage", "Summary"),
    ("WorkPackage", "WorkPackage"),
    ("Activity", "Activity"),
])
def test_invalid_children_rejected(parent_type, child_type):
    with pytest.raises(RuleViolation):
        check_parent_child(_item(1, None, parent_type), child_type)


def test_top_level_must_be_summary():
    check_parent_child(None, "Summary")
    with pytest.raises(RuleViolation, match="Top-level"):
        check_parent_child(None, "WorkPackage")


def test_single_work_package_level():
    items = {
        1: _item(1, None, "Summary"),
        2: _item(2, 1, "WorkPackage"),
        3: _item(3, 2, "Activity"),
    }
    assert has_work_package_ancestor(items, items[3])
    assert not has_work_package_ancestor(items, items[2])
    # a Summary sitting under the WorkPackage branch cannot host another WorkPackage
    items[4] = _item(4, 2, "Summary")
    with pytest.raises(RuleViolation, match="Only one level"):
        check_work_package_depth(items, items[4], "WorkPackage")
    check_work_package_depth(items, items[1], "WorkPackage")


def test_cannot_move_under_own_descendant():
    items = {1: _item(1, None, "Summary"), 2: _item(2, 1, "Summary"), 3: _item(3, 2, "Summary")}
    with pytest.raises(RuleViolation):
        check_not_own_descendant(items, 1, 3)
    with pytest.raises(RuleViolation):
        check_not_own_descendant(items, 2, 2)
    check_not_own_descendant(items, 3, 1)


def test_type_change_against_children():
    parent = _item(1, None, "Summary")
    item = _item(2, 1, "Summary")
    with pytest.raises(RuleViolation, match="Cannot change to 'Activity'"):
        check_type_change(item, "Activity", _item(1, None, "WorkPackage"), [_item(3, 2, "Summary")])
    with pytest.raises(RuleViolation, match="non-Activity children"):
        check_type_change(item, "WorkPackage", parent, [_item(3, 2, "Summary")])
    wp = _item(5, 1, "WorkPackage")
    with pytest.raises(RuleViolation):
        check_type_change(wp, "Summary", parent, [_item(6, 5, "Activity")])
    # no children: Summary <-> WorkPackage is fine under a Summary
    check_type_change(item, "WorkPackage", parent, [])


def test_shape_budget_bearing():
    assert check_shape("Summary", Decimal("10"), None, None, None) is None
    with pytest.raises(RuleViolation, match="must have a budget"):
        check_shape("WorkPackage", None, None, None, None)
    with pytest.raises(RuleViolation, match="cannot have dates"):
        check_shape("Summary", Decimal("1"), dt.date(2025, 1, 1), None, None)


def test_shape_activity():
    start, end = dt.date(2025, 3, 1), dt.date(2025, 3, 10)
    assert check_shape("Activity", Decimal("0"), start, end, None) == 10
    assert check_shape("Activity", None, start, end, 7) == 7
    with pytest.raises(RuleViolation, match="cannot have a budget"):
        check_shape("Activity", Decimal("5"), start, end, None)
    with pytest.raises(RuleViolation, match="must have start date"):
        check_shape("Activity", Decimal("0"), start, None, None)
    with pytest.raises(RuleViolation):
        check_shape("Activity", Decimal("0"), end, start, None)


def test_duration_counts_both_ends():
    assert derive_activity_duration(dt.date(2025, 1, 1), dt.date(2025, 1, 1)) == 1
    assert derive_activity_duration(dt.date(2025, 1, 30), dt.date(2025, 2, 2)) == 4


def test_rollup():
    check_rollup("x", Decimal("100"), [Decimal("60"), Decimal("40")])
    with pytest.raises(RuleViolation, match="exceed"):
        check_rollup("x", Decimal("100"), [Decimal("60"), Decimal("40.01")])


def test_budget_tree_ignores_activities_and_checks_project():
    nodes = [
        WbsNode(1, None, "Summary", Decimal("80")),
        WbsNode(2, 1, "WorkPackage", Decimal("50")),
        WbsNode(3, 2, "Activity", Decimal("0")),
        WbsNode(4, 1, "Summary", Decimal("30")),
    ]
    check_budget_tree(Decimal("100"), nodes, [None, 1, 2])
    nodes.append(WbsNode(5, None, "Summary", Decimal("25")))
    with pytest.raises(RuleViolation, match="the project"):
        check_budget_tree(Decimal("100"), nodes, [None])
    nodes[3].budgeted_cost = Decimal("31")
    with pytest.raises(RuleViolation):
        check_budget_tree(Decimal("1000"), nodes, [1])


def test_codes():
    assert parent_code("1.2.3") == "1.2"
    assert parent_code("4") is None
    assert next_child_code("1", ["1", "1.1", "1.2", "2.7"]) == "1.3"
    assert next_child_code(None, ["1", "2", "3", "1.9"]) == "4"
    assert next_child_code("2", []) == "2.1"


def test_retype_keeps_links_on_activities_and_costs_off_them():
    check_retype_attachments("WorkPackage", dependencies=0, tasks=0, cost_entries=3)
    check_retype_attachments("Activity", dependencies=2, tasks=1, cost_entries=0)
    with pytest.raises(RuleViolation, match="has dependencies"):
        check_retype_attachments("Summary", dependencies=1, tasks=0, cost_entries=0)
    with pytest.raises(RuleViolation, match="has tasks"):
        check_retype_attachments("WorkPackage", dependencies=0, tasks=2, cost_entries=0)
    with pytest.raises(RuleViolation, match="has cost entries"):
        check_retype_attachments("Activity", dependencies=0, tasks=0, cost_entries=1)
