from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from smartproject.core.errors import NotFoundError
from smartproject.db.models.dependency import Dependency
from smartproject.db.models.wbs import WbsItem
from smartproject.schemas.dependency import DependencyCreate
from smartproject.services.schedule.dependencies import check_new_dependency


def list_project_dependencies(db: Session, project_id: int) -> list[Dependency]:
    ids = select(WbsItem.id).where(WbsItem.project_id == project_id)
    return (
        db.query(Dependency)
        .filter(or_(Dependency.predecessor_id.in_(ids), Dependency.successor_id.in_(ids)))
        .order_by(Dependency.id)
        .all()
    )


def list_item_dependencies(db: Session, wbs_item_id: int) -> list[Dependency]:
    return (
        db.query(Dependency)
        .filter(or_(Dependency.predecessor_id == wbs_item_id, Dependency.successor_id == wbs_item_id))
        .order_by(Dependency.id)
        .all()
    )


def create_dependency(db: Session, data: DependencyCreate) -> Dependency:
    predecessor = db.get(WbsItem, data.predecessor_id)
    if not predecessor:
        raise NotFoundError("Predecessor WBS item not found")
    successor = db.get(WbsItem, data.successor_id)
    if not successor:
        raise NotFoundError("Successor WBS item not found")

    edges = [(d.predecessor_id, d.successor_id) for d in list_project_dependencies(db, predecessor.project_id)]
    check_new_dependency(predecessor, successor, edges)

    dep = Dependency(
        predecessor_id=predecessor.id,
        successor_id=successor.id,
        type=data.type.value,
        lag=data.lag,
    )
    db.add(dep)
    db.commit()
    db.refresh(dep)
    return dep


def delete_dependency(db: Session, predecessor_id: int, successor_id: int) -> None:
    dep = (
        db.query(Dependency)
        .filter(Dependency.predecessor_id == predecessor_id, Dependency.successor_id == successor_id)
        .one_or_none()
    )
    if not dep:
        raise NotFoundError("Dependency not found")
    db.delete(dep)
    db.commit()
