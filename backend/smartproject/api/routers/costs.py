from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.orm import Session

from smartproject.core.deps import get_db, load_project
from smartproject.core.logging import logger
from smartproject.schemas.cost import CostEntryCreate, CostEntryOut
from smartproject.schemas.imports import CostImportIn
from smartproject.crud.costs import create_cost_entry, delete_cost_entry
from smartproject.services.etl.importer import import_cost_entries
from smartproject.services.etl.parsers.csv_upload import read_csv_upload

router = APIRouter()

COST_COLUMNS = ("wbsCode", "amount", "entryDate")


@router.post("", response_model=CostEntryOut, status_code=201)
def post_cost_entry(data: CostEntryCreate, db: Session = Depends(get_db)):
    entry = create_cost_entry(db, data)
    logger.info("cost_entry_created", cost_id=entry.id, wbs_id=entry.wbs_item_id, amount=str(entry.amount))
    return entry


@router.post("/import", response_model=list[CostEntryOut], status_code=201)
def post_cost_import(data: CostImportIn, db: Session = Depends(get_db)):
    return import_cost_entries(db, load_project(db, data.project_id), data.csv_data)


@router.post("/import/file", response_model=list[CostEntryOut], status_code=201)
def post_cost_import_file(
    project_id: int = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    project = load_project(db, project_id)
    return import_cost_entries(db, project, read_csv_upload(file, COST_COLUMNS))


@router.delete("/{cost_id}", status_code=204)
def remove_cost_entry(cost_id: int, db: Session = Depends(get_db)):
    delete_cost_entry(db, cost_id)
    logger.info("cost_entry_deleted", cost_id=cost_id)
    return Response(status_code=204)
