"""Response envelopes.

Resource endpoints wrap payloads in ``{"data": ...}`` and every error uses
``{"error": {...}}``. The chat endpoint is the exception: its body is the
bare ``{message, persona, stage}`` document the client sends back as
history on the next turn.
"""

from typing import Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hh_vibe.core.errors import APIError

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """``{"data": ...}`` wrapper for resource endpoints."""

    data: T


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: list[dict] | None = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


def error_response(exc: APIError, headers: dict[str, str] | None = None) -> JSONResponse:
    """Render an APIError with its status code in the error envelope."""
    body = ErrorResponse(
        error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details)
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=headers,
    )
