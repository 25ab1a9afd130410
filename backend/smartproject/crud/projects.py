from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.orm import Session

from smartproject.core.errors import RuleViolation
from smartproject.db.models.project import Project
from smartproject.db.models.wbs import WbsItem
from smartproject.schemas.project import ProjectCreate, ProjectUpdate
from smartproject.services.wbs.rules import SUMMARY, check_rollup

# code, name, description, share of the project budget (None takes the remainder)
DEFAULT_TOP_LEVEL = (
    ("1", "Engineering & Design", "Engineering and design phase", Decimal("0.05")),
    ("2", "Procurement & Construction", "Procurement and construction phase", Decimal("0.85")),
    ("3", "Testing & Commissioning", "Testing and commissioning phase", None),
)

def list_projects(db: Session):
    return db.query(Project).order_by(Project.id).all()

def get_project(db: Session, project_id: int) -> Project | None:
    return db.get(Project, project_id)

def create_project(db: Session, data: ProjectCreate) -> Project:
    p = Project(
        name=data.name.strip(),
        description=data.description,
        start_date=data.start_date,
        end_date=data.end_date,
        budget=data.budget,
        currency=data.currency.value,
    )
    db.add(p)
    db.flush()

    remaining = Decimal(data.budget)
    for code, name, description, share in DEFAULT_TOP_LEVEL:
        if share is None:
            amount = remaining
        else:
            amount = (Decimal(data.budget) * share).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        remaining -= amount
        db.add(WbsItem(
            project_id=p.id,
            parent_id=None,
            name=name,
            description=description,
            level=1,
            code=code,
            type=SUMMARY,
            budgeted_cost=amount,
            actual_cost=Decimal("0"),
            percent_complete=Decimal("0"),
            is_top_level=True,
        ))
    db.commit()
    db.refresh(p)
    return p


def update_project(db: Session, p: Project, data: ProjectUpdate) -> Project:
    fields = data.model_dump(exclude_unset=True, exclude_none=True)
    start = fields.get("start_date", p.start_date)
    end = fields.get("end_date", p.end_date)
    if end < start:
        raise RuleViolation("end_date must not be before start_date")

    if "budget" in fields:
        top = [
            b for (b,) in db.query(WbsItem.budgeted_cost)
            .filter(WbsItem.project_id == p.id, WbsItem.parent_id.is_(None))
            .all()
        ]
        check_rollup("the project", fields["budget"], top)

    if "name" in fields:
        p.name = fields["name"].strip()
    if "description" in data.model_fields_set:
        p.description = data.description
    if "currency" in fields:
        p.currency = fields["currency"].value
    p.start_date = start
    p.end_date = end
    p.budget = fields.get("budget", p.budget)
    db.commit()
    db.refresh(p)
    return p


def delete_project(db: Session, p: Project) -> None:
    db.delete(p)
    db.commit()
