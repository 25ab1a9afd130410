from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from smartproject.core.deps import get_db
from smartproject.core.errors import NotFoundError
from smartproject.schemas.task import TaskCreate, TaskUpdate, TaskOut
from smartproject.crud.tasks import create_task, get_task, update_task, delete_task

router = APIRouter()


def _task_or_404(db: Session, task_id: int):
    t = get_task(db, task_id)
    if not t:
        raise NotFoundError("Task not found")
    return t


@router.post("", response_model=TaskOut, status_code=201)
def post_task(data: TaskCreate, db: Session = Depends(get_db)):
    return create_task(db, data)


@router.get("/{task_id}", response_model=TaskOut)
def read_task(task_id: int, db: Session = Depends(get_db)):
    return _task_or_404(db, task_id)


@router.patch("/{task_id}", response_model=TaskOut)
def patch_task(task_id: int, data: TaskUpdate, db: Session = Depends(get_db)):
    return update_task(db, _task_or_404(db, task_id), data)


@router.delete("/{task_id}", status_code=204)
def remove_task(task_id: int, db: Session = Depends(get_db)):
    delete_task(db, _task_or_404(db, task_id))
    return Response(status_code=204)
