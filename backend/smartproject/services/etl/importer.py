"""CSV imports for cost entries, WBS items and activity updates.

Each import validates every row first and reports all failures as
``Row N: ...`` messages; nothing is written unless the whole file is clean,
and a clean file is written in a single transaction.
"""
import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ValidationError as SchemaError
from sqlalchemy.orm import Session

from smartproject.core.errors import NotFoundError, RuleViolation
from smartproject.core.logging import logger
from smartproject.crud.costs import create_cost_entries
from smartproject.crud.wbs import attachment_counts
from smartproject.db.models.cost_entry import CostEntry
from smartproject.db.models.project import Project
from smartproject.db.models.wbs import WbsItem
from smartproject.schemas.imports import ActivityCsvRow, CostCsvRow, WbsCsvRow
from smartproject.services.etl.validators import ValidationError, schema_errors
from smartproject.services.schedule.dependencies import derive_task_dates
from smartproject.services.wbs.rules import (
    ACTIVITY,
    BUDGET_BEARING,
    WORK_PACKAGE,
    WbsNode,
    check_budget_tree,
    check_parent_child,
    check_retype_attachments,
    check_shape,
    check_type_change,
    check_work_package_depth,
    parent_code,
)


def _parse_rows(model: type[BaseModel], csv_data: list[dict[str, Any]]):
    rows, errors = [], []
    for n, raw in enumerate(csv_data, start=1):
        try:
            rows.append((n, model.model_validate(raw)))
        except SchemaError as e:
            errors.extend(schema_errors(e, n))
    return rows, errors


def _reject(errors: list[ValidationError], project_id: int, kind: str) -> None:
    logger.info("csv_import_rejected", project_id=project_id, kind=kind, errors=len(errors))
    raise RuleViolation("Validation errors in CSV data", errors=[str(e) for e in errors])


def _project_items(db: Session, project_id: int) -> list[WbsItem]:
    return db.query(WbsItem).filter(WbsItem.project_id == project_id).all()


# ---------------------------------
# Costs
# ---------------------------------
def import_cost_entries(db: Session, project: Project, csv_data: list[dict]) -> list[CostEntry]:
    rows, errors = _parse_rows(CostCsvRow, csv_data)
    by_code = {i.code: i for i in _project_items(db, project.id)}

    entries = []
    for n, row in rows:
        item = by_code.get(row.wbs_code)
        if item is None:
            errors.append(ValidationError(f"WBS code '{row.wbs_code}' not found", row_num=n, column="wbsCode"))
            continue
        if item.type not in BUDGET_BEARING:
            errors.append(ValidationError(
                f"WBS code '{row.wbs_code}' is of type '{item.type}', which cannot have cost entries",
                row_num=n,
                column="wbsCode",
            ))
            continue
        entries.append(CostEntry(
            wbs_item_id=item.id,
            amount=row.amount,
            description=row.description or "",
            entry_date=row.entry_date,
        ))

    if not csv_data:
        errors.append(ValidationError("The CSV file has no data rows"))
    if errors:
        _reject(sorted(errors, key=lambda e: e.row_num or 0), project.id, "costs")

    created = create_cost_entries(db, entries)
    logger.info(
        "cost_entries_imported",
        project_id=project.id,
        rows=len(created),
        total=str(sum((e.amount for e in created), Decimal("0"))),
    )
    return created


# ---------------------------------
# WBS structure
# ---------------------------------
@dataclass
class _Planned:
    """Pending state of one row: an existing item to update or a new one."""

    row_num: int
    node: WbsNode
    name: str
    level: int
    start_date: dt.date | None
    end_date: dt.date | None
    duration: int | None
    existing: WbsItem | None = None


def _code_depth(code: str) -> tuple:
    parts = code.split(".")
    return len(parts), [(0, int(p), "") if p.isdigit() else (1, 0, p) for p in parts]


def import_wbs_rows(db: Session, project: Project, csv_data: list[dict]) -> list[WbsItem]:
    rows, errors = _parse_rows(WbsCsvRow, csv_data)
    items = _project_items(db, project.id)
    by_id = {i.id: i for i in items}

    # working set: persisted rows as nodes, new rows get negative ids
    nodes: dict[int, WbsNode] = {i.id: WbsNode.of(i) for i in items}
    by_code: dict[str, WbsNode] = {n.code: n for n in nodes.values()}
    levels: dict[int, int] = {i.id: i.level for i in items}
    planned: dict[str, _Planned] = {}
    next_temp_id = -1

    seen_codes: dict[str, int] = {}
    unique_rows = []
    for n, row in rows:
        if row.wbs_code in seen_codes:
            errors.append(ValidationError(
                f"WBS code '{row.wbs_code}' is repeated (first seen in row {seen_codes[row.wbs_code]})",
                row_num=n,
                column="wbsCode",
            ))
            continue
        seen_codes[row.wbs_code] = n
        unique_rows.append((n, row))

    for n, row in sorted(unique_rows, key=lambda r: _code_depth(r[1].wbs_code)):
        code = row.wbs_code
        item_type = row.wbs_type.value
        pcode = parent_code(code)
        parent = by_code.get(pcode) if pcode else None
        if pcode and parent is None:
            errors.append(ValidationError(f"Parent WBS code '{pcode}' not found", row_num=n, column="wbsCode"))
            continue

        current = by_code.get(code)
        existing = by_id.get(current.id) if current is not None and current.id > 0 else None
        parent_id = parent.id if parent else None
        budget = row.amount
        if budget is None and item_type == ACTIVITY:
            budget = Decimal("0")

        try:
            check_parent_child(parent, item_type)
            check_work_package_depth(nodes, parent, item_type)
            if existing is not None:
                # imports update in place; moving an item goes through PATCH /api/wbs/{id}
                if existing.parent_id != parent_id:
                    raise RuleViolation(
                        f"WBS code '{code}' belongs to an item under a different parent; "
                        "imports cannot move existing items"
                    )
                kids = [c for c in nodes.values() if c.parent_id == current.id]
                check_type_change(current, item_type, parent, kids)
                if existing.type != item_type:
                    check_retype_attachments(item_type, *attachment_counts(db, existing.id))
            duration = check_shape(item_type, budget, row.start_date, row.end_date, row.duration)
        except RuleViolation as e:
            errors.append(ValidationError(e.message, row_num=n))
            continue

        if current is None:
            current = WbsNode(id=next_temp_id, parent_id=parent_id, type=item_type, budgeted_cost=Decimal("0"), code=code)
            next_temp_id -= 1
            nodes[current.id] = current
            by_code[code] = current
        current.parent_id = parent_id
        current.type = item_type
        current.budgeted_cost = Decimal(budget or 0)
        current.name = row.wbs_name
        levels[current.id] = levels[parent_id] + 1 if parent_id is not None else 1

        try:
            check_budget_tree(project.budget, nodes.values(), {parent_id, current.id})
        except RuleViolation as e:
            errors.append(ValidationError(e.message, row_num=n))
            continue

        planned[code] = _Planned(
            row_num=n,
            node=current,
            name=row.wbs_name,
            level=levels[current.id],
            start_date=row.start_date,
            end_date=row.end_date,
            duration=duration,
            existing=existing,
        )

    if not csv_data:
        errors.append(ValidationError("The CSV file has no data rows"))
    if errors:
        _reject(sorted(errors, key=lambda e: e.row_num or 0), project.id, "wbs")

    written: dict[int, WbsItem] = {}
    created = updated = 0
    try:
        for code, plan in sorted(planned.items(), key=lambda kv: _code_depth(kv[0])):
            node = plan.node
            parent_obj = None
            if node.parent_id is not None:
                parent_obj = written.get(node.parent_id) or by_id.get(node.parent_id)

            item = plan.existing
            if item is None:
                item = WbsItem(
                    project_id=project.id,
                    code=code,
                    actual_cost=Decimal("0"),
                    percent_complete=Decimal("0"),
                    is_top_level=False,
                )
                db.add(item)
                created += 1
            else:
                updated += 1
            item.parent = parent_obj
            item.name = plan.name
            item.type = node.type
            item.level = plan.level
            item.budgeted_cost = node.budgeted_cost
            item.start_date = plan.start_date
            item.end_date = plan.end_date
            item.duration = plan.duration
            written[node.id] = item
        db.commit()
    except Exception:
        db.rollback()
        raise

    out = list(written.values())
    for item in out:
        db.refresh(item)
    logger.info("wbs_imported", project_id=project.id, created=created, updated=updated)
    return sorted(out, key=lambda i: _code_depth(i.code)[1])


# ---------------------------------
# Activity updates
# ---------------------------------
def import_activity_rows(
    db: Session,
    project: Project,
    csv_data: list[dict],
    work_package_id: int | None = None,
) -> list[WbsItem]:
    work_package = None
    if work_package_id is not None:
        work_package = db.get(WbsItem, work_package_id)
        if work_package is None or work_package.project_id != project.id:
            raise NotFoundError("Work package not found")
        if work_package.type != WORK_PACKAGE:
            raise RuleViolation("Activities can only be imported into a 'WorkPackage'")

    rows, errors = _parse_rows(ActivityCsvRow, csv_data)
    by_code = {i.code: i for i in _project_items(db, project.id)}

    changes = []
    seen: set[str] = set()
    for n, row in rows:
        item = by_code.get(row.wbs_code)
        if item is None or item.type != ACTIVITY:
            errors.append(ValidationError(f"Activity with WBS code '{row.wbs_code}' not found", row_num=n, column="wbsCode"))
            continue
        if work_package is not None and item.parent_id != work_package.id:
            errors.append(ValidationError(
                f"Activity '{row.wbs_code}' does not belong to work package '{work_package.code}'",
                row_num=n,
                column="wbsCode",
            ))
            continue
        if row.wbs_code in seen:
            errors.append(ValidationError(f"WBS code '{row.wbs_code}' is repeated", row_num=n, column="wbsCode"))
            continue
        seen.add(row.wbs_code)

        start = row.start_date or item.start_date
        end, duration = row.end_date, row.duration
        if end is None and duration is None:
            end, duration = item.end_date, item.duration
            if row.start_date is not None and item.duration:
                # a moved start keeps the activity length
                end, duration = None, item.duration
        try:
            end, duration = derive_task_dates(start, end, duration)
            duration = check_shape(ACTIVITY, Decimal("0"), start, end, duration)
        except RuleViolation as e:
            errors.append(ValidationError(e.message, row_num=n))
            continue
        changes.append((item, row, start, end, duration))

    if not csv_data:
        errors.append(ValidationError("The CSV file has no data rows"))
    if errors:
        _reject(sorted(errors, key=lambda e: e.row_num or 0), project.id, "activities")

    try:
        for item, row, start, end, duration in changes:
            if row.name:
                item.name = row.name
            if row.description is not None:
                item.description = row.description
            if row.percent_complete is not None:
                item.percent_complete = row.percent_complete
            item.start_date = start
            item.end_date = end
            item.duration = duration
        db.commit()
    except Exception:
        db.rollback()
        raise

    out = [c[0] for c in changes]
    for item in out:
        db.refresh(item)
    logger.info("activities_imported", project_id=project.id, rows=len(out))
    return out
