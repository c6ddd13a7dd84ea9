"""Uniform response envelope.

success: {"success": true, "data": <any>}
failure: {"success": false, "error": {"code": "<UPPER_SNAKE>", "message": "...", "details"?: <any>}}

Every JSON body the API writes goes through ok()/created()/fail(). 204
responses carry no body at all.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from collections.abc import Mapping


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str = Field(pattern=r"^[A-Z][A-Z0-9_]*$")
    message: str
    details: Any = None


class SuccessEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: Literal[True] = True
    data: Any = None


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: Literal[False] = False
    error: ErrorBody


def success_body(data: Any) -> dict[str, Any]:
    """Build the success envelope as a JSON-ready dict (camelCase aliases)."""
    envelope = SuccessEnvelope(data=jsonable_encoder(data, by_alias=True))
    return envelope.model_dump()


def error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    """Build the failure envelope; `details` is omitted when None."""
    body = ErrorBody(code=code, message=message, details=jsonable_encoder(details, by_alias=True))
    dumped = ErrorEnvelope(error=body).model_dump()
    if body.details is None:
        del dumped["error"]["details"]
    return dumped


def ok(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=success_body(data))


def created(data: Any) -> JSONResponse:
    return ok(data, status_code=201)


def no_content() -> Response:
    return Response(status_code=204)


def fail(
    code: str,
    message: str,
    status_code: int,
    details: Any = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_body(code, message, details),
        headers=headers,
    )
