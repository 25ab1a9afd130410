import datetime as dt
from decimal import Decimal
from sqlalchemy.orm import Session

from smartproject.db.session import SessionLocal
from smartproject.core.logging import logger
from smartproject.crud.projects import list_projects, create_project
from smartproject.crud.wbs import create_wbs_item, list_wbs_items
from smartproject.crud.dependencies import create_dependency
from smartproject.schemas.project import ProjectCreate
from smartproject.schemas.wbs import WbsItemCreate
from smartproject.schemas.dependency import DependencyCreate
from smartproject.db.models.wbs import WbsType


def seed_demo():
    db: Session = SessionLocal()
    try:
        # Create default project if none
        if list_projects(db):
            return
        today = dt.date.today()
        p = create_project(db, ProjectCreate(
            name="Demo Office Building",
            description="Seeded demo project",
            start_date=today,
            end_date=today + dt.timedelta(days=364),
            budget=Decimal("1000000"),
        ))
        construction = next(i for i in list_wbs_items(db, p.id) if i.code == "2")
        wp = create_wbs_item(db, WbsItemCreate(
            project_id=p.id,
            parent_id=construction.id,
            name="Foundations",
            type=WbsType.work_package,
            budgeted_cost=Decimal("150000"),
        ))
        excavation = create_wbs_item(db, WbsItemCreate(
            project_id=p.id,
            parent_id=wp.id,
            name="Excavation",
            type=WbsType.activity,
            start_date=today,
            end_date=today + dt.timedelta(days=13),
        ))
        concrete = create_wbs_item(db, WbsItemCreate(
            project_id=p.id,
            parent_id=wp.id,
            name="Pour concrete",
            type=WbsType.activity,
            start_date=today + dt.timedelta(days=14),
            end_date=today + dt.timedelta(days=27),
        ))
        create_dependency(db, DependencyCreate(predecessor_id=excavation.id, successor_id=concrete.id))
        logger.info("demo_seeded", project_id=p.id)
    finally:
        db.close()
