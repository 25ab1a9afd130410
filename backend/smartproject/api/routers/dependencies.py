from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from smartproject.core.deps import get_db
from smartproject.core.logging import logger
from smartproject.schemas.dependency import DependencyCreate, DependencyOut
from smartproject.crud.dependencies import create_dependency, delete_dependency

router = APIRouter()


@router.post("", response_model=DependencyOut, status_code=201)
def post_dependency(data: DependencyCreate, db: Session = Depends(get_db)):
    dep = create_dependency(db, data)
    logger.info("dependency_created", predecessor_id=dep.predecessor_id, successor_id=dep.successor_id, type=dep.type)
    return dep


@router.delete("/{predecessor_id}/{successor_id}", status_code=204)
def remove_dependency(predecessor_id: int, successor_id: int, db: Session = Depends(get_db)):
    delete_dependency(db, predecessor_id, successor_id)
    return Response(status_code=204)
