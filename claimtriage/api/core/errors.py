"""Application error taxonomy and the FastAPI handlers that render it."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    AI_ERROR = "AI_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AiFailureReason(str, Enum):
    SCHEMA_VALIDATION_FAILED = "SCHEMA_VALIDATION_FAILED"
    PROVIDER_ERROR = "PROVIDER_ERROR"


class AppError(Exception):
    """Base class for errors that map onto the public error envelope."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "details": self.details}


class RequestValidationFailed(AppError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, issues: List[Dict[str, str]], message: str = "Validation failed") -> None:
        super().__init__(message, details=issues)
        self.issues = issues


class InvalidCursor(AppError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, cursor: str) -> None:
        super().__init__("Invalid cursor", details={"cursor": cursor})
        self.cursor = cursor


class ClaimNotFound(AppError):
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, claim_id: str) -> None:
        super().__init__("Claim not found")
        self.claim_id = claim_id


class AiGenerationFailed(AppError):
    code = ErrorCode.AI_ERROR
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, reason: AiFailureReason, message: Optional[str] = None) -> None:
        if message is None:
            message = (
                "AI response did not match the required schema."
                if reason is AiFailureReason.SCHEMA_VALIDATION_FAILED
                else "AI generation failed."
            )
        super().__init__(message, details={"reason": reason.value})
        self.reason = reason


def _status_to_code(status_code: int) -> ErrorCode:
    if status_code == status.HTTP_404_NOT_FOUND:
        return ErrorCode.NOT_FOUND
    if status_code == status.HTTP_502_BAD_GATEWAY:
        return ErrorCode.AI_ERROR
    if status_code >= 500:
        return ErrorCode.INTERNAL_ERROR
    return ErrorCode.VALIDATION_ERROR


def _envelope(status_code: int, code: ErrorCode, message: str, details: Any = None) -> JSONResponse:
    body = {"error": {"code": code.value, "message": message, "details": details}}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def format_issues(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic style error dicts into ``{path, message}`` pairs."""

    issues = []
    for error in errors:
        path = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query"))
        issues.append({"path": path, "message": str(error.get("msg", "Invalid value"))})
    return issues


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s - %s", request.method, request.url.path, exc.message, exc_info=exc)
    return _envelope(exc.status_code, exc.code, exc.message, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _envelope(
        status.HTTP_400_BAD_REQUEST,
        ErrorCode.VALIDATION_ERROR,
        "Validation failed",
        format_issues(list(exc.errors())),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s - %s", request.method, request.url.path, exc.detail, exc_info=exc)
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _envelope(exc.status_code, _status_to_code(exc.status_code), message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("%s %s - unhandled error", request.method, request.url.path, exc_info=exc)
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_ERROR, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
