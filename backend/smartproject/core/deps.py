from fastapi import Depends
from sqlalchemy.orm import Session

from smartproject.db.session import SessionLocal
from smartproject.core.errors import NotFoundError
from smartproject.db.models.project import Project
from smartproject.db.models.wbs import WbsItem

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def load_project(db: Session, project_id: int) -> Project:
    p = db.get(Project, project_id)
    if not p:
        raise NotFoundError("Project not found")
    return p

def get_project_or_404(project_id: int, db: Session = Depends(get_db)) -> Project:
    return load_project(db, project_id)

def get_wbs_item_or_404(wbs_id: int, db: Session = Depends(get_db)) -> WbsItem:
    item = db.get(WbsItem, wbs_id)
    if not item:
        raise NotFoundError("WBS item not found")
    return item
