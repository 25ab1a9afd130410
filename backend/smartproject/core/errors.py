"""Domain exceptions and their HTTP rendering.

Every error leaves the API as ``{"message": ..., "errors": [...]}``; ``errors``
is only present when there is something to list (schema failures, CSV rows).
"""
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from smartproject.core.config import settings
from smartproject.core.logging import logger


class DomainError(ValueError):
    status_code = 400

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class RuleViolation(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


def _body(message: str, errors: list[str] | None = None) -> dict:
    body: dict = {"message": message}
    if errors:
        body["errors"] = errors
    return body


def format_validation_errors(errors) -> list[str]:
    out = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        path = ".".join(loc)
        msg = err.get("msg", "invalid value")
        out.append(f"{path}: {msg}" if path else msg)
    return out


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def _domain_error(request: Request, exc: DomainError):
        logger.info(
            "request_rejected",
            path=request.url.path,
            status=exc.status_code,
            message=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=_body(exc.message, exc.errors))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        errors = format_validation_errors(exc.errors())
        logger.info("request_invalid", path=request.url.path, errors=errors)
        return JSONResponse(status_code=400, content=jsonable_encoder(_body("Validation error", errors)))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_body(str(exc.detail)))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path)
        body = _body("Internal server error")
        if settings.ENV != "prod":
            body["detail"] = repr(exc)
        return JSONResponse(status_code=500, content=body)
