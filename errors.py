import logging
from typing import Optional, Type, TypeVar

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def error_response(status_code: int, message, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message}, headers=headers)


def required_text(value: Optional[str], label: str) -> str:
    """Trim a form value and reject it when missing or blank."""
    if value is None or not value.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{label} is required")
    return value.strip()


def optional_text(value: Optional[str], label: str) -> Optional[str]:
    """Like required_text, but only for values the client actually sent."""
    if value is None:
        return None
    return required_text(value, label)


def validated(model: Type[ModelT], **fields) -> ModelT:
    """Build a model from request input; a field constraint failure is the client's (400)."""
    try:
        return model(**fields)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


def validated_changes(document: BaseModel, changes: dict) -> dict:
    """Check a partial update against the document's field constraints before it is written."""
    validated(type(document), **{**document.model_dump(), **changes})
    return changes


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc):
    errors = exc.errors()
    if not errors:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form"))
    message = first.get("msg", "Invalid value")
    return error_response(status.HTTP_400_BAD_REQUEST, f"{field}: {message}" if field else message)


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    return error_response(status.HTTP_409_CONFLICT, "Resource already exists")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
