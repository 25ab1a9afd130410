import datetime as dt
from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from smartproject.core.deps import get_db, get_project_or_404
from smartproject.core.logging import logger
from smartproject.db.models.project import Project
from smartproject.schemas.project import ProjectCreate, ProjectOut, ProjectUpdate, BudgetUsageOut
from smartproject.schemas.wbs import WbsItemOut
from smartproject.schemas.dependency import DependencyOut
from smartproject.schemas.task import TaskOut
from smartproject.schemas.cost import CostEntryOut
from smartproject.schemas.metrics import EvmReportOut
from smartproject.crud.projects import create_project, list_projects, update_project, delete_project
from smartproject.crud.wbs import list_wbs_items, budget_usage, finalize_budget
from smartproject.crud.dependencies import list_project_dependencies
from smartproject.crud.tasks import list_project_tasks
from smartproject.crud.costs import list_project_costs
from smartproject.services.evm import evm_report
from smartproject.services.exports.exporter import export_evm_xlsx, export_evm_pdf, default_export_path

router = APIRouter()


@router.get("", response_model=list[ProjectOut])
def get_projects(db: Session = Depends(get_db)):
    return list_projects(db)


@router.post("", response_model=ProjectOut, status_code=201)
def post_project(data: ProjectCreate, db: Session = Depends(get_db)):
    p = create_project(db, data)
    logger.info("project_created", project_id=p.id, budget=str(p.budget))
    return p


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project: Project = Depends(get_project_or_404)):
    return project


@router.patch("/{project_id}", response_model=ProjectOut)
def patch_project(data: ProjectUpdate, project: Project = Depends(get_project_or_404), db: Session = Depends(get_db)):
    return update_project(db, project, data)


@router.delete("/{project_id}", status_code=204)
def remove_project(project: Project = Depends(get_project_or_404), db: Session = Depends(get_db)):
    project_id = project.id
    delete_project(db, project)
    logger.info("project_deleted", project_id=project_id)
    return Response(status_code=204)


@router.get("/{project_id}/wbs", response_model=list[WbsItemOut])
def get_project_wbs(project: Project = Depends(get_project_or_404), db: Session = Depends(get_db)):
    return list_wbs_items(db, project.id)


@router.get("/{project_id}/dependencies", response_model=list[DependencyOut])
def get_project_dependencies(project: Project = Depends(get_project_or_404), db: Session = Depends(get_db)):
    return list_project_dependencies(db, project.id)


@router.get("/{project_id}/tasks", response_model=list[TaskOut])
def get_project_tasks(project: Project = Depends(get_project_or_404), db: Session = Depends(get_db)):
    return list_project_tasks(db, project.id)


@router.get("/{project_id}/costs", response_model=list[CostEntryOut])
def get_project_costs(project: Project = Depends(get_project_or_404), db: Session = Depends(get_db)):
    return list_project_costs(db, project.id)


@router.get("/{project_id}/budget", response_model=BudgetUsageOut)
def get_budget_usage(project: Project = Depends(get_project_or_404), db: Session = Depends(get_db)):
    return budget_usage(db, project)


@router.post("/{project_id}/wbs/finalize-budget", response_model=list[WbsItemOut])
def post_finalize_budget(project: Project = Depends(get_project_or_404), db: Session = Depends(get_db)):
    updated = finalize_budget(db, project)
    logger.info("budget_finalized", project_id=project.id, summaries=len(updated))
    return updated


@router.get("/{project_id}/metrics", response_model=EvmReportOut)
def get_metrics(
    as_of: dt.date | None = Query(None),
    project: Project = Depends(get_project_or_404),
    db: Session = Depends(get_db),
):
    return evm_report(db, project, as_of)


@router.get("/{project_id}/metrics/export.xlsx")
def export_metrics_xlsx(
    as_of: dt.date | None = Query(None),
    project: Project = Depends(get_project_or_404),
    db: Session = Depends(get_db),
):
    data = evm_report(db, project, as_of)
    out = default_export_path(f"evm_{project.id}", "xlsx")
    export_evm_xlsx(data, out, project_name=project.name)
    return FileResponse(str(out), media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", filename=out.name)


@router.get("/{project_id}/metrics/export.pdf")
def export_metrics_pdf(
    as_of: dt.date | None = Query(None),
    project: Project = Depends(get_project_or_404),
    db: Session = Depends(get_db),
):
    data = evm_report(db, project, as_of)
    out = default_export_path(f"evm_{project.id}", "pdf")
    export_evm_pdf(data, out, project_name=project.name)
    return FileResponse(str(out), media_type="application/pdf", filename=out.name)
