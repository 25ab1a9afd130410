from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.orm import Session

from smartproject.core.deps import get_db, load_project, get_wbs_item_or_404
from smartproject.core.logging import logger
from smartproject.db.models.wbs import WbsItem
from smartproject.schemas.wbs import WbsItemCreate, WbsItemUpdate, WbsProgressUpdate, WbsItemOut
from smartproject.schemas.dependency import DependencyOut
from smartproject.schemas.cost import CostEntryOut
from smartproject.schemas.task import TaskOut
from smartproject.schemas.imports import WbsImportIn, ActivityImportIn
from smartproject.crud.wbs import create_wbs_item, update_wbs_item, update_wbs_progress, delete_wbs_item
from smartproject.crud.dependencies import list_item_dependencies
from smartproject.crud.costs import list_item_costs
from smartproject.crud.tasks import list_activity_tasks
from smartproject.services.etl.importer import import_wbs_rows, import_activity_rows
from smartproject.services.etl.parsers.csv_upload import read_csv_upload

router = APIRouter()

WBS_COLUMNS = ("wbsCode", "wbsName", "wbsType")
ACTIVITY_COLUMNS = ("wbsCode",)


@router.post("", response_model=WbsItemOut, status_code=201)
def post_wbs_item(data: WbsItemCreate, db: Session = Depends(get_db)):
    item = create_wbs_item(db, data)
    logger.info("wbs_item_created", wbs_id=item.id, project_id=item.project_id, code=item.code, type=item.type)
    return item


@router.post("/import", response_model=list[WbsItemOut], status_code=201)
def post_wbs_import(data: WbsImportIn, db: Session = Depends(get_db)):
    return import_wbs_rows(db, load_project(db, data.project_id), data.csv_data)


@router.post("/import/file", response_model=list[WbsItemOut], status_code=201)
def post_wbs_import_file(
    project_id: int = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    project = load_project(db, project_id)
    return import_wbs_rows(db, project, read_csv_upload(file, WBS_COLUMNS))


@router.post("/activities/import", response_model=list[WbsItemOut])
def post_activity_import(data: ActivityImportIn, db: Session = Depends(get_db)):
    return import_activity_rows(db, load_project(db, data.project_id), data.csv_data, data.work_package_id)


@router.post("/activities/import/file", response_model=list[WbsItemOut])
def post_activity_import_file(
    project_id: int = Form(...),
    work_package_id: int | None = Form(None),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    project = load_project(db, project_id)
    return import_activity_rows(db, project, read_csv_upload(file, ACTIVITY_COLUMNS), work_package_id)


@router.get("/{wbs_id}", response_model=WbsItemOut)
def get_wbs_item(item: WbsItem = Depends(get_wbs_item_or_404)):
    return item


@router.patch("/{wbs_id}", response_model=WbsItemOut)
def patch_wbs_item(data: WbsItemUpdate, item: WbsItem = Depends(get_wbs_item_or_404), db: Session = Depends(get_db)):
    return update_wbs_item(db, item, data)


@router.patch("/{wbs_id}/progress", response_model=WbsItemOut)
def patch_wbs_progress(
    data: WbsProgressUpdate,
    item: WbsItem = Depends(get_wbs_item_or_404),
    db: Session = Depends(get_db),
):
    return update_wbs_progress(db, item, data)


@router.delete("/{wbs_id}", status_code=204)
def remove_wbs_item(item: WbsItem = Depends(get_wbs_item_or_404), db: Session = Depends(get_db)):
    wbs_id, project_id = item.id, item.project_id
    delete_wbs_item(db, item)
    logger.info("wbs_item_deleted", wbs_id=wbs_id, project_id=project_id)
    return Response(status_code=204)


@router.get("/{wbs_id}/dependencies", response_model=list[DependencyOut])
def get_item_dependencies(item: WbsItem = Depends(get_wbs_item_or_404), db: Session = Depends(get_db)):
    return list_item_dependencies(db, item.id)


@router.get("/{wbs_id}/costs", response_model=list[CostEntryOut])
def get_item_costs(item: WbsItem = Depends(get_wbs_item_or_404), db: Session = Depends(get_db)):
    return list_item_costs(db, item.id)


@router.get("/{wbs_id}/tasks", response_model=list[TaskOut])
def get_item_tasks(item: WbsItem = Depends(get_wbs_item_or_404), db: Session = Depends(get_db)):
    return list_activity_tasks(db, item.id)
