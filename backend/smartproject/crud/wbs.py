from decimal import Decimal
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from smartproject.core.errors import NotFoundError, RuleViolation
from smartproject.db.models.cost_entry import CostEntry
from smartproject.db.models.dependency import Dependency
from smartproject.db.models.project import Project
from smartproject.db.models.task import Task
from smartproject.db.models.wbs import WbsItem
from smartproject.schemas.wbs import WbsItemCreate, WbsItemUpdate, WbsProgressUpdate
from smartproject.services.wbs.rules import (
    ACTIVITY,
    BUDGET_BEARING,
    SUMMARY,
    WORK_PACKAGE,
    WbsNode,
    check_budget_tree,
    check_not_own_descendant,
    check_parent_child,
    check_retype_attachments,
    check_shape,
    check_type_change,
    check_work_package_depth,
    next_child_code,
)

_NEW_ID = 0


def attachment_counts(db: Session, wbs_id: int) -> tuple[int, int, int]:
    """Dependencies, tasks and cost entries hanging off one item."""
    deps = db.query(func.count(Dependency.id)).filter(
        or_(Dependency.predecessor_id == wbs_id, Dependency.successor_id == wbs_id)
    ).scalar()
    tasks = db.query(func.count(Task.id)).filter(Task.activity_id == wbs_id).scalar()
    costs = db.query(func.count(CostEntry.id)).filter(CostEntry.wbs_item_id == wbs_id).scalar()
    return deps or 0, tasks or 0, costs or 0


def list_wbs_items(db: Session, project_id: int) -> list[WbsItem]:
    items = db.query(WbsItem).filter(WbsItem.project_id == project_id).all()
    return sorted(items, key=lambda i: _code_key(i.code))


def _code_key(code: str):
    return [(0, int(p), "") if p.isdigit() else (1, 0, p) for p in code.split(".")]


def get_wbs_item(db: Session, wbs_id: int) -> WbsItem | None:
    return db.get(WbsItem, wbs_id)


def _check_code_free(items: list[WbsItem], code: str, own_id: int | None = None) -> None:
    if any(i.code == code and i.id != own_id for i in items):
        raise RuleViolation(f"WBS code '{code}' already exists in this project")


def create_wbs_item(db: Session, data: WbsItemCreate) -> WbsItem:
    project = db.get(Project, data.project_id)
    if not project:
        raise NotFoundError("Project not found")

    items = db.query(WbsItem).filter(WbsItem.project_id == project.id).all()
    by_id = {i.id: i for i in items}

    parent = None
    if data.parent_id is not None:
        parent = by_id.get(data.parent_id)
        if parent is None:
            raise NotFoundError("Parent WBS item not found")

    item_type = data.type.value
    check_parent_child(parent, item_type)
    check_work_package_depth(by_id, parent, item_type)

    budget = data.budgeted_cost
    if budget is None and item_type == ACTIVITY:
        budget = Decimal("0")
    duration = check_shape(item_type, budget, data.start_date, data.end_date, data.duration)

    code = data.code.strip() if data.code and data.code.strip() else next_child_code(
        parent.code if parent else None, [i.code for i in items]
    )
    _check_code_free(items, code)

    nodes = [WbsNode.of(i) for i in items]
    nodes.append(WbsNode(id=_NEW_ID, parent_id=data.parent_id, type=item_type, budgeted_cost=budget))
    check_budget_tree(project.budget, nodes, [data.parent_id])

    item = WbsItem(
        project_id=project.id,
        parent_id=data.parent_id,
        name=data.name.strip(),
        description=data.description,
        level=parent.level + 1 if parent else 1,
        code=code,
        type=item_type,
        budgeted_cost=budget,
        actual_cost=Decimal("0"),
        percent_complete=Decimal("0"),
        start_date=data.start_date,
        end_date=data.end_date,
        duration=duration,
        is_top_level=False,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def _shift_levels(items: list[WbsItem], root_id: int, delta: int) -> None:
    if not delta:
        return
    children: dict[int, list[WbsItem]] = {}
    for i in items:
        if i.parent_id is not None:
            children.setdefault(i.parent_id, []).append(i)
    stack = list(children.get(root_id, []))
    while stack:
        c = stack.pop()
        c.level += delta
        stack.extend(children.get(c.id, []))


def update_wbs_item(db: Session, item: WbsItem, data: WbsItemUpdate) -> WbsItem:
    fields = data.model_dump(exclude_unset=True)
    project = db.get(Project, item.project_id)
    items = db.query(WbsItem).filter(WbsItem.project_id == item.project_id).all()
    by_id = {i.id: i for i in items}

    new_type = fields["type"].value if fields.get("type") else item.type
    type_changed = new_type != item.type
    new_parent_id = fields["parent_id"] if "parent_id" in fields else item.parent_id
    parent_changed = new_parent_id != item.parent_id

    parent = None
    if new_parent_id is not None:
        parent = by_id.get(new_parent_id)
        if parent is None:
            raise NotFoundError("Parent WBS item not found")

    if parent_changed:
        if item.is_top_level:
            raise RuleViolation("Top-level WBS items cannot be moved")
        check_not_own_descendant(by_id, item.id, new_parent_id)
    if parent_changed or type_changed:
        check_parent_child(parent, new_type)
        check_work_package_depth(by_id, parent, new_type)
    children = [i for i in items if i.parent_id == item.id]
    check_type_change(item, new_type, parent, children)
    if type_changed:
        check_retype_attachments(new_type, *attachment_counts(db, item.id))

    budget = fields.get("budgeted_cost", item.budgeted_cost)
    start = fields.get("start_date", item.start_date)
    end = fields.get("end_date", item.end_date)
    duration = fields.get("duration", item.duration)
    if type_changed and new_type == ACTIVITY and "budgeted_cost" not in fields:
        budget = Decimal("0")
    if type_changed and new_type in BUDGET_BEARING:
        start = start if "start_date" in fields else None
        end = end if "end_date" in fields else None
        duration = duration if "duration" in fields else None
    elif ("start_date" in fields or "end_date" in fields) and "duration" not in fields:
        duration = None
    duration = check_shape(new_type, budget, start, end, duration)
    if budget is None:
        budget = Decimal("0")

    code = item.code
    if fields.get("code"):
        code = fields["code"].strip()
        _check_code_free(items, code, own_id=item.id)

    nodes = []
    for i in items:
        n = WbsNode.of(i)
        if i.id == item.id:
            n.parent_id, n.type, n.budgeted_cost = new_parent_id, new_type, Decimal(budget or 0)
        nodes.append(n)
    check_budget_tree(project.budget, nodes, {item.parent_id, new_parent_id, item.id})

    if parent_changed:
        new_level = parent.level + 1 if parent else 1
        _shift_levels(items, item.id, new_level - item.level)
        item.level = new_level
        item.parent_id = new_parent_id

    if fields.get("name"):
        item.name = fields["name"].strip()
    if "description" in fields:
        item.description = fields["description"]
    item.code = code
    item.type = new_type
    item.budgeted_cost = budget
    item.start_date = start
    item.end_date = end
    item.duration = duration

    db.commit()
    db.refresh(item)
    return item


def update_wbs_progress(db: Session, item: WbsItem, data: WbsProgressUpdate) -> WbsItem:
    if item.type != ACTIVITY and (data.actual_start_date or data.actual_end_date):
        raise RuleViolation("Only 'Activity' items can have actual start and end dates")
    start = data.actual_start_date or item.actual_start_date
    end = data.actual_end_date or item.actual_end_date
    if start and end and end < start:
        raise RuleViolation("Actual end date must not be before the actual start date")

    item.percent_complete = data.percent_complete
    item.actual_start_date = start
    item.actual_end_date = end
    db.commit()
    db.refresh(item)
    return item


def delete_wbs_item(db: Session, item: WbsItem) -> None:
    if item.is_top_level:
        raise RuleViolation("Cannot delete top-level WBS items")
    db.delete(item)
    db.commit()


def budget_usage(db: Session, project: Project) -> dict:
    items = db.query(WbsItem).filter(WbsItem.project_id == project.id).all()
    top = sum((Decimal(i.budgeted_cost or 0) for i in items if i.parent_id is None), Decimal("0"))
    wp_total = sum((Decimal(i.budgeted_cost or 0) for i in items if i.type == WORK_PACKAGE), Decimal("0"))
    budget = Decimal(project.budget)

    summaries = []
    for s in sorted((i for i in items if i.type == SUMMARY), key=lambda i: _code_key(i.code)):
        used = sum(
            (Decimal(c.budgeted_cost or 0) for c in items if c.parent_id == s.id and c.type in BUDGET_BEARING),
            Decimal("0"),
        )
        total = Decimal(s.budgeted_cost or 0)
        summaries.append(
            {"id": s.id, "code": s.code, "name": s.name, "total": total, "used": used, "remaining": total - used}
        )

    return {
        "project_id": project.id,
        "project_budget": budget,
        "top_level_allocated": top,
        "work_package_total": wp_total,
        "unallocated": budget - top,
        "percent_allocated": float(top / budget * 100) if budget else 0.0,
        "summaries": summaries,
    }


def finalize_budget(db: Session, project: Project) -> list[WbsItem]:
    """Shrink every Summary to the sum of its budget-bearing children, deepest first."""
    items = db.query(WbsItem).filter(WbsItem.project_id == project.id).all()
    summaries = sorted((i for i in items if i.type == SUMMARY), key=lambda i: -i.level)
    updated = []
    for s in summaries:
        kids = [c for c in items if c.parent_id == s.id and c.type in BUDGET_BEARING]
        if not kids:
            continue
        s.budgeted_cost = sum((Decimal(c.budgeted_cost or 0) for c in kids), Decimal("0"))
        updated.append(s)
    db.commit()
    for s in updated:
        db.refresh(s)
    return sorted(updated, key=lambda i: _code_key(i.code))
