import datetime as dt
from typing import Iterable

from smartproject.core.errors import RuleViolation
from smartproject.db.models.wbs import WbsType


def would_create_cycle(edges: Iterable[tuple[int, int]], predecessor_id: int, successor_id: int) -> bool:
    """True if adding predecessor -> successor closes a cycle.

    Walks the successor graph depth-first from ``successor_id``; reaching
    ``predecessor_id`` means the new edge would point back into its own past.
    """
    if predecessor_id == successor_id:
        return True
    succs: dict[int, list[int]] = {}
    for p, s in edges:
        succs.setdefault(p, []).append(s)

    stack = [successor_id]
    seen: set[int] = set()
    while stack:
        n = stack.pop()
        if n == predecessor_id:
            return True
        if n in seen:
            continue
        seen.add(n)
        stack.extend(succs.get(n, []))
    return False


def check_new_dependency(predecessor, successor, edges: Iterable[tuple[int, int]]) -> None:
    if predecessor.id == successor.id:
        raise RuleViolation("Cannot create self-dependency")
    activity = WbsType.activity.value
    if predecessor.type != activity or successor.type != activity:
        raise RuleViolation("Dependencies can only be created between 'Activity' items")
    if predecessor.project_id != successor.project_id:
        raise RuleViolation("Dependencies must link activities of the same project")

    edges = list(edges)
    if (predecessor.id, successor.id) in edges:
        raise RuleViolation("This dependency already exists")
    if would_create_cycle(edges, predecessor.id, successor.id):
        raise RuleViolation("This would create a circular dependency and is not allowed")


def derive_task_dates(
    start: dt.date | None,
    end: dt.date | None,
    duration: int | None,
) -> tuple[dt.date | None, int | None]:
    """Fill in whichever of end/duration is missing; days are inclusive."""
    if start is None:
        return end, duration
    if end is None and duration is not None:
        end = start + dt.timedelta(days=duration - 1)
    elif end is not None:
        if end < start:
            raise RuleViolation("End date must not be before the start date")
        duration = (end - start).days + 1
    return end, duration
