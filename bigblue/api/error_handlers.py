"""Error Handlers - global exception handlers for the BigBlue API.

Every error body has the shape {"success": false, "error": "<message>"}:
    - BigBlueError           -> its own status, plus "code"
    - HTTPException          -> same status and headers
    - RequestValidationError -> 400, plus "errors" with one message per field
    - DuplicateKeyError      -> 400 "<field> already exists"
    - Exception (catch-all)  -> 500, "message" only in development
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bigblue.core.config import get_settings
from bigblue.core.errors import BigBlueError

logger = logging.getLogger(__name__)

PYDANTIC_PREFIXES = ("Value error, ", "Assertion failed, ")


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_bigblue_error_handler(app)
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_duplicate_key_handler(app)
    _register_generic_error_handler(app)


def _register_bigblue_error_handler(app: FastAPI) -> None:

    @app.exception_handler(BigBlueError)
    async def bigblue_error_handler(request: Request, exc: BigBlueError):
        """Handle all service-layer errors."""
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc.message}",
            extra={"error_code": exc.code, "path": request.url.path, "status_code": exc.http_status},
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}",
            extra={"path": request.url.path, "status_code": exc.status_code},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors."""
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_duplicate_key_handler(app: FastAPI) -> None:

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
        key_value = (exc.details or {}).get("keyValue") or {}
        field = next(iter(key_value), None)
        message = f"{field} already exists" if field else "Duplicate field value entered"
        logger.warning(message, extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": message},
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all - internal details only leak in development."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"path": request.url.path},
        )
        content = {"success": False, "error": "Internal Server Error"}
        if get_settings().is_development:
            content["message"] = str(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def _clean_message(msg: str) -> str:
    for prefix in PYDANTIC_PREFIXES:
        if msg.startswith(prefix):
            return msg[len(prefix):]
    return msg


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    errors = []
    for e in exc.errors():
        field = ".".join(str(loc) for loc in e["loc"] if loc != "body")
        message = _clean_message(e["msg"])
        errors.append(f"{field}: {message}" if field else message)
    return {"success": False, "error": "Validation Error", "errors": errors}
