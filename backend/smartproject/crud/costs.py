from collections import defaultdict
from decimal import Decimal
from sqlalchemy import update
from sqlalchemy.orm import Session

from smartproject.core.errors import NotFoundError, RuleViolation
from smartproject.db.models.cost_entry import CostEntry
from smartproject.db.models.wbs import WbsItem
from smartproject.schemas.cost import CostEntryCreate
from smartproject.services.wbs.rules import BUDGET_BEARING


def list_item_costs(db: Session, wbs_item_id: int) -> list[CostEntry]:
    return (
        db.query(CostEntry)
        .filter(CostEntry.wbs_item_id == wbs_item_id)
        .order_by(CostEntry.entry_date, CostEntry.id)
        .all()
    )


def list_project_costs(db: Session, project_id: int) -> list[CostEntry]:
    return (
        db.query(CostEntry)
        .join(WbsItem, CostEntry.wbs_item_id == WbsItem.id)
        .filter(WbsItem.project_id == project_id)
        .order_by(CostEntry.entry_date, CostEntry.id)
        .all()
    )


def check_accepts_costs(item: WbsItem) -> None:
    if item.type not in BUDGET_BEARING:
        raise RuleViolation("Cost entries can only be added to 'WorkPackage' or 'Summary' items")


def _bump_actual_cost(db: Session, wbs_item_id: int, delta: Decimal) -> None:
    # in-database arithmetic keeps concurrent postings from overwriting each other
    db.execute(
        update(WbsItem)
        .where(WbsItem.id == wbs_item_id)
        .values(actual_cost=WbsItem.actual_cost + delta)
    )


def create_cost_entry(db: Session, data: CostEntryCreate) -> CostEntry:
    item = db.get(WbsItem, data.wbs_item_id)
    if not item:
        raise NotFoundError("WBS item not found")
    check_accepts_costs(item)

    entry = CostEntry(
        wbs_item_id=item.id,
        amount=data.amount,
        description=data.description,
        entry_date=data.entry_date,
    )
    db.add(entry)
    _bump_actual_cost(db, item.id, data.amount)
    db.commit()
    db.refresh(entry)
    return entry


def create_cost_entries(db: Session, entries: list[CostEntry]) -> list[CostEntry]:
    """Insert a batch in one transaction and post the per-item totals."""
    if not entries:
        return []
    totals: dict[int, Decimal] = defaultdict(Decimal)
    try:
        for e in entries:
            db.add(e)
            totals[e.wbs_item_id] += Decimal(e.amount)
        for wbs_item_id, amount in totals.items():
            _bump_actual_cost(db, wbs_item_id, amount)
        db.commit()
    except Exception:
        db.rollback()
        raise
    for e in entries:
        db.refresh(e)
    return entries


def delete_cost_entry(db: Session, cost_id: int) -> None:
    entry = db.get(CostEntry, cost_id)
    if not entry:
        raise NotFoundError("Cost entry not found")
    _bump_actual_cost(db, entry.wbs_item_id, -Decimal(entry.amount))
    db.delete(entry)
    db.commit()
