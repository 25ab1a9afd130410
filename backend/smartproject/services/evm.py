import datetime as dt
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from smartproject.db.models.project import Project
from smartproject.db.models.wbs import WbsItem
from smartproject.services.wbs.rules import ACTIVITY, BUDGET_BEARING

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _money(v: Decimal) -> Decimal:
    return Decimal(v).quantize(CENT, rounding=ROUND_HALF_UP)


def earned_value(budget: Decimal, percent_complete: Decimal) -> Decimal:
    return Decimal(budget) * Decimal(percent_complete) / Decimal(100)


def cost_performance_index(ev: Decimal, ac: Decimal) -> float:
    # nothing spent yet counts as on budget
    if not ac:
        return 1.0
    return float(Decimal(ev) / Decimal(ac))


def schedule_performance_index(ev: Decimal, pv: Decimal) -> float:
    if not pv:
        return 1.0
    return float(Decimal(ev) / Decimal(pv))


def cost_variance(ev: Decimal, ac: Decimal) -> Decimal:
    return Decimal(ev) - Decimal(ac)


def schedule_variance(ev: Decimal, pv: Decimal) -> Decimal:
    return Decimal(ev) - Decimal(pv)


def planned_fraction(start: dt.date, end: dt.date, as_of: dt.date) -> Decimal:
    """Linear share of [start, end] (inclusive days) elapsed by ``as_of``."""
    if as_of < start:
        return ZERO
    if as_of >= end:
        return Decimal(1)
    total = (end - start).days + 1
    done = (as_of - start).days + 1
    return Decimal(done) / Decimal(total)


def _activity_window(item_id: int, children: dict[int, list[WbsItem]]) -> tuple[dt.date | None, dt.date | None]:
    start = end = None
    stack = list(children.get(item_id, []))
    while stack:
        c = stack.pop()
        if c.type == ACTIVITY and c.start_date and c.end_date:
            start = c.start_date if start is None else min(start, c.start_date)
            end = c.end_date if end is None else max(end, c.end_date)
        stack.extend(children.get(c.id, []))
    return start, end


def evm_report(db: Session, project: Project, as_of: dt.date | None = None) -> dict:
    as_of = as_of or dt.date.today()
    items = (
        db.query(WbsItem)
        .filter(WbsItem.project_id == project.id)
        .order_by(WbsItem.level, WbsItem.code)
        .all()
    )
    children: dict[int, list[WbsItem]] = {}
    for it in items:
        if it.parent_id is not None:
            children.setdefault(it.parent_id, []).append(it)

    rows = []
    tot_budget = tot_ev = tot_pv = ZERO
    tot_actual = sum((Decimal(it.actual_cost or 0) for it in items), ZERO)

    for it in items:
        if it.type not in BUDGET_BEARING:
            continue
        budget = Decimal(it.budgeted_cost or 0)
        actual = Decimal(it.actual_cost or 0)
        pct = Decimal(it.percent_complete or 0)

        start, end = _activity_window(it.id, children)
        if start is None:
            start, end = project.start_date, project.end_date
        ev = earned_value(budget, pct)
        pv = budget * planned_fraction(start, end, as_of)

        rows.append(
            {
                "wbs_item_id": it.id,
                "code": it.code,
                "name": it.name,
                "type": it.type,
                "level": it.level,
                "budgeted_cost": _money(budget),
                "actual_cost": _money(actual),
                "percent_complete": pct,
                "earned_value": _money(ev),
                "planned_value": _money(pv),
                "cost_variance": _money(cost_variance(ev, actual)),
                "schedule_variance": _money(schedule_variance(ev, pv)),
                "cpi": cost_performance_index(ev, actual),
                "spi": schedule_performance_index(ev, pv),
            }
        )

        # leaves of the budget tree carry the money; parents only re-state it
        if not any(c.type in BUDGET_BEARING for c in children.get(it.id, [])):
            tot_budget += budget
            tot_ev += ev
            tot_pv += pv

    totals = {
        "budgeted_cost": _money(tot_budget),
        "actual_cost": _money(tot_actual),
        "earned_value": _money(tot_ev),
        "planned_value": _money(tot_pv),
        "cost_variance": _money(cost_variance(tot_ev, tot_actual)),
        "schedule_variance": _money(schedule_variance(tot_ev, tot_pv)),
        "cpi": cost_performance_index(tot_ev, tot_actual),
        "spi": schedule_performance_index(tot_ev, tot_pv),
        "percent_complete": float(tot_ev / tot_budget * 100) if tot_budget else 0.0,
    }
    return {
        "project_id": project.id,
        "currency": project.currency,
        "as_of": as_of,
        "rows": rows,
        "totals": totals,
    }
