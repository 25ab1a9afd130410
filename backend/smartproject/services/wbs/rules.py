"""WBS hierarchy and budget roll-up rules.

The checks take plain values or anything shaped like a ``WbsItem`` (``id``,
``parent_id``, ``type``, ``budgeted_cost``, ``is_top_level``), so the CRUD
layer and the CSV importers can run them against either persisted rows or a
working set that has not been written yet.
"""
import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from smartproject.core.errors import RuleViolation
from smartproject.db.models.wbs import WbsType

SUMMARY = WbsType.summary.value
WORK_PACKAGE = WbsType.work_package.value
ACTIVITY = WbsType.activity.value

BUDGET_BEARING = (SUMMARY, WORK_PACKAGE)

# parent type -> allowed child types; None is the project root
ALLOWED_CHILDREN: dict[str | None, frozenset[str]] = {
    None: frozenset({SUMMARY}),
    SUMMARY: frozenset({SUMMARY, WORK_PACKAGE}),
    WORK_PACKAGE: frozenset({ACTIVITY}),
    ACTIVITY: frozenset(),
}


def _type(v) -> str | None:
    if v is None:
        return None
    return v.value if isinstance(v, WbsType) else str(v)


def check_parent_child(parent, child_type) -> None:
    """Reject ``child_type`` under ``parent`` (``None`` for a top-level item)."""
    child = _type(child_type)
    if parent is None:
        if child != SUMMARY:
            raise RuleViolation("Top-level WBS items must be of type 'Summary'")
        return

    ptype = _type(parent.type)
    if child in ALLOWED_CHILDREN[ptype]:
        return
    if ptype == SUMMARY:
        raise RuleViolation(
            "A 'Summary' WBS item cannot have an 'Activity' as a direct child. "
            "It must have a 'WorkPackage' in between."
        )
    if ptype == WORK_PACKAGE:
        raise RuleViolation("A 'WorkPackage' can only have 'Activity' items as children")
    raise RuleViolation("An 'Activity' item cannot have children")


def has_work_package_ancestor(items_by_id: Mapping[int, object], item) -> bool:
    seen: set[int] = set()
    cur = item
    while cur is not None and cur.parent_id is not None and cur.parent_id not in seen:
        seen.add(cur.parent_id)
        cur = items_by_id.get(cur.parent_id)
        if cur is not None and _type(cur.type) == WORK_PACKAGE:
            return True
    return False


def check_work_package_depth(items_by_id: Mapping[int, object], parent, child_type) -> None:
    if _type(child_type) != WORK_PACKAGE or parent is None:
        return
    if _type(parent.type) == WORK_PACKAGE or has_work_package_ancestor(items_by_id, parent):
        raise RuleViolation(
            "Cannot create a 'WorkPackage' at this level. "
            "Only one level of 'WorkPackage' is allowed in the hierarchy."
        )


def check_not_own_descendant(items_by_id: Mapping[int, object], item_id: int, new_parent_id: int | None) -> None:
    cur_id = new_parent_id
    seen: set[int] = set()
    while cur_id is not None and cur_id not in seen:
        if cur_id == item_id:
            raise RuleViolation("A WBS item cannot be moved under itself or one of its descendants")
        seen.add(cur_id)
        node = items_by_id.get(cur_id)
        cur_id = node.parent_id if node is not None else None


def check_type_change(item, new_type, parent, children: Iterable) -> None:
    """Validate changing ``item`` to ``new_type`` against its parent and children."""
    new = _type(new_type)
    if new == _type(item.type):
        return
    check_parent_child(parent, new)

    children = list(children)
    if not children:
        return
    if new == ACTIVITY:
        raise RuleViolation(
            "Cannot change to 'Activity' type because this item has children. "
            "'Activity' items cannot have children."
        )
    if new == WORK_PACKAGE and any(_type(c.type) != ACTIVITY for c in children):
        raise RuleViolation(
            "Cannot change to 'WorkPackage' type because this item has non-Activity children. "
            "'WorkPackage' items can only have 'Activity' children."
        )
    if new == SUMMARY and any(_type(c.type) == ACTIVITY for c in children):
        raise RuleViolation(
            "Cannot change to 'Summary' type because this item has 'Activity' children. "
            "A 'Summary' must have a 'WorkPackage' in between."
        )


def check_retype_attachments(new_type, dependencies: int, tasks: int, cost_entries: int) -> None:
    """Links and tasks belong to Activities only; costs never do."""
    new = _type(new_type)
    if new != ACTIVITY:
        if dependencies:
            raise RuleViolation(
                f"Cannot change to '{new}' type because this item has dependencies. "
                "Only 'Activity' items can have dependencies."
            )
        if tasks:
            raise RuleViolation(
                f"Cannot change to '{new}' type because this item has tasks. "
                "Tasks can only be assigned to activities."
            )
    elif cost_entries:
        raise RuleViolation(
            "Cannot change to 'Activity' type because this item has cost entries. "
            "Cost entries can only be added to 'WorkPackage' or 'Summary' items."
        )


def derive_activity_duration(start: dt.date, end: dt.date) -> int:
    return (end - start).days + 1


def check_shape(
    item_type,
    budgeted_cost: Decimal | None,
    start_date: dt.date | None,
    end_date: dt.date | None,
    duration: int | None,
) -> int | None:
    """Check type-dependent fields; returns the (possibly derived) duration."""
    t = _type(item_type)
    if t in BUDGET_BEARING:
        if budgeted_cost is None or budgeted_cost < 0:
            raise RuleViolation("Summary and WorkPackage types must have a budget")
        if start_date is not None or end_date is not None or duration is not None:
            raise RuleViolation("Summary and WorkPackage types cannot have dates")
        return None

    if budgeted_cost not in (None, Decimal("0")):
        raise RuleViolation("Activity types cannot have a budget")
    if start_date is None or end_date is None:
        raise RuleViolation("Activity types must have start date, end date, and duration")
    if end_date < start_date:
        raise RuleViolation("Activity end date must not be before its start date")
    if duration is None:
        duration = derive_activity_duration(start_date, end_date)
    if duration <= 0:
        raise RuleViolation("Activity types must have start date, end date, and duration")
    return duration


def check_rollup(parent_label: str, parent_budget: Decimal, children_budgets: Iterable[Decimal]) -> None:
    total = sum((Decimal(b or 0) for b in children_budgets), Decimal("0"))
    if total > Decimal(parent_budget or 0):
        raise RuleViolation(
            f"Children budgets ({total}) exceed the budget of {parent_label} ({parent_budget})"
        )


@dataclass
class WbsNode:
    """Budget-relevant view of a WBS item, persisted or not."""

    id: int
    parent_id: int | None
    type: str
    budgeted_cost: Decimal
    code: str = ""
    name: str = ""

    @classmethod
    def of(cls, item) -> "WbsNode":
        return cls(
            id=item.id,
            parent_id=item.parent_id,
            type=_type(item.type),
            budgeted_cost=Decimal(item.budgeted_cost or 0),
            code=item.code,
            name=item.name,
        )


def check_budget_tree(project_budget: Decimal, nodes: Iterable[WbsNode], parent_ids: Iterable[int | None]) -> None:
    """Re-check the roll-up of every listed parent; ``None`` is the project itself."""
    nodes = list(nodes)
    by_id = {n.id: n for n in nodes}
    for pid in set(parent_ids):
        kids = [n.budgeted_cost for n in nodes if n.parent_id == pid and n.type in BUDGET_BEARING]
        if pid is None:
            check_rollup("the project", project_budget, kids)
            continue
        parent = by_id.get(pid)
        if parent is None or parent.type not in BUDGET_BEARING:
            continue
        check_rollup(f"'{parent.code} {parent.name}'", parent.budgeted_cost, kids)


def parent_code(code: str) -> str | None:
    code = code.strip()
    if "." not in code:
        return None
    return code.rsplit(".", 1)[0]


def next_child_code(parent_code_: str | None, sibling_codes: Iterable[str]) -> str:
    prefix = f"{parent_code_}." if parent_code_ else ""
    taken = set(sibling_codes)
    used = []
    for c in taken:
        tail = c[len(prefix):] if c.startswith(prefix) else None
        if tail and tail.isdigit():
            used.append(int(tail))
    n = max(used, default=0) + 1
    while f"{prefix}{n}" in taken:
        n += 1
    return f"{prefix}{n}"
