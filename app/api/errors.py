# app/api/errors.py
import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import timestamp
from app.core.config import settings
from app.core.exceptions import AppError, ValidationError

logger = logging.getLogger(__name__)

# location prefixes FastAPI puts in front of the field path
_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def error_response(request: Request, status_code: int, message: str,
                   errors: Optional[List[Dict[str, str]]] = None,
                   exc: Optional[BaseException] = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    body.update({
        "path": request.url.path,
        "method": request.method,
        "timestamp": timestamp(),
    })
    if exc is not None and not settings.is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body)


def _field_name(loc) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in _LOCATIONS:
        parts = parts[1:]
    return ".".join(parts)


def integrity_status(exc: IntegrityError):
    text = str(exc.orig if exc.orig is not None else exc).lower()
    if "unique" in text or "duplicate" in text:
        return 409, "Resource already exists"
    if "foreign key" in text:
        return 400, "Invalid reference"
    return 400, "Database constraint violated"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        errors = exc.errors if isinstance(exc, ValidationError) else None
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(request, exc.status_code, exc.message, errors=errors,
                              exc=exc if exc.status_code >= 500 else None)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [{"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
                  for err in exc.errors()]
        return error_response(request, 400, "Invalid input data", errors=errors)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        status_code, message = integrity_status(exc)
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return error_response(request, status_code, message)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        message = "Database error" if settings.is_production else f"Database error: {exc}"
        return error_response(request, 500, message, exc=exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = f"Route not found: {request.method} {request.url.path}"
        else:
            message = str(exc.detail)
        return error_response(request, exc.status_code, message)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(request, 500, "Internal server error", exc=exc)
