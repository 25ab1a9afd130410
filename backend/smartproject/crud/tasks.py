from sqlalchemy.orm import Session

from smartproject.core.errors import NotFoundError, RuleViolation
from smartproject.db.models.task import Task
from smartproject.db.models.wbs import WbsItem
from smartproject.schemas.task import TaskCreate, TaskUpdate
from smartproject.services.schedule.dependencies import derive_task_dates
from smartproject.services.wbs.rules import ACTIVITY


def list_project_tasks(db: Session, project_id: int) -> list[Task]:
    return db.query(Task).filter(Task.project_id == project_id).order_by(Task.id).all()


def list_activity_tasks(db: Session, activity_id: int) -> list[Task]:
    return db.query(Task).filter(Task.activity_id == activity_id).order_by(Task.id).all()


def get_task(db: Session, task_id: int) -> Task | None:
    return db.get(Task, task_id)


def _get_activity(db: Session, activity_id: int) -> WbsItem:
    activity = db.get(WbsItem, activity_id)
    if not activity:
        raise NotFoundError("Activity not found")
    if activity.type != ACTIVITY:
        raise RuleViolation("Tasks can only be assigned to activities")
    return activity


def create_task(db: Session, data: TaskCreate) -> Task:
    activity = _get_activity(db, data.activity_id)
    end, duration = derive_task_dates(data.start_date, data.end_date, data.duration)
    task = Task(
        activity_id=activity.id,
        project_id=activity.project_id,
        name=data.name.strip(),
        description=data.description,
        start_date=data.start_date,
        end_date=end,
        duration=duration,
        percent_complete=data.percent_complete,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, task: Task, data: TaskUpdate) -> Task:
    fields = data.model_dump(exclude_unset=True)

    if fields.get("activity_id") and fields["activity_id"] != task.activity_id:
        activity = _get_activity(db, fields["activity_id"])
        task.activity_id = activity.id
        task.project_id = activity.project_id

    start = fields.get("start_date", task.start_date)
    end = fields.get("end_date")
    duration = fields.get("duration")
    if "end_date" in fields and end is not None:
        # a new end date wins; duration follows it
        end, duration = derive_task_dates(start, end, None)
    elif duration is not None:
        end, duration = derive_task_dates(start, None, duration)
    elif "start_date" in fields and start is not None and task.duration:
        # start moved, keep the length
        end, duration = derive_task_dates(start, None, task.duration)
    else:
        end = fields["end_date"] if "end_date" in fields else task.end_date
        duration = fields["duration"] if "duration" in fields else task.duration

    if fields.get("name"):
        task.name = fields["name"].strip()
    if "description" in fields:
        task.description = fields["description"]
    if fields.get("percent_complete") is not None:
        task.percent_complete = fields["percent_complete"]
    task.start_date = start
    task.end_date = end
    task.duration = duration

    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task: Task) -> None:
    db.delete(task)
    db.commit()
