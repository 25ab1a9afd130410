import uuid
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from smartproject.core.config import settings
from smartproject.core.errors import register_exception_handlers
from smartproject.core.logging import bind_request_context, configure_logging, logger
from smartproject.api.router import api_router
from smartproject.db.session import engine
from smartproject.db.base import Base
import smartproject.db.models  # noqa: F401
from smartproject.services.seed import seed_demo

def create_app() -> FastAPI:
    configure_logging(settings.ENV, settings.LOG_LEVEL)
    app = FastAPI(title="SmartProject", version="0.1.0")

    origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.middleware("http")
    async def _request_context(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup():
        # no migrations; the schema comes from the model metadata
        if settings.CREATE_TABLES:
            Base.metadata.create_all(bind=engine)
        if settings.SEED_DEMO and settings.ENV == "dev":
            seed_demo()

    app.include_router(api_router, prefix="/api")
    logger.info("app_started", env=settings.ENV)
    return app

app = create_app()


def run():
    uvicorn.run("smartproject.main:app", host=settings.HOST, port=settings.PORT, reload=settings.ENV == "dev")
