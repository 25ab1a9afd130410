from fastapi import APIRouter
from smartproject.api.routers import projects, wbs, dependencies, costs, tasks

api_router = APIRouter()
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(wbs.router, prefix="/wbs", tags=["wbs"])
api_router.include_router(dependencies.router, prefix="/dependencies", tags=["dependencies"])
api_router.include_router(costs.router, prefix="/costs", tags=["costs"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
