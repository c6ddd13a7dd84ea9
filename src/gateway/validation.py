"""Schema validation for untrusted request input.

Two modes, mirroring how handlers want to fail:
- parse(): returns the validated model or raises ValidationError, which the
  error mapper turns into a 400 VALIDATION_ERROR envelope.
- safe_parse(): never raises for bad input; returns ValidationSuccess or
  ValidationFailure so the handler can pick its own message.

Field errors come straight from pydantic, in pydantic's order, so the same
input against the same schema always reports the same list.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

import pydantic
from pydantic import BaseModel

from src.shared.errors import ValidationError

if TYPE_CHECKING:
    from fastapi import Request

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class FieldError:
    """One failing field: where, why, and pydantic's error type."""

    path: tuple[str | int, ...]
    message: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": list(self.path), "message": self.message, "type": self.type}


@dataclass(frozen=True)
class ValidationSuccess(Generic[M]):
    data: M
    success: Literal[True] = True


@dataclass(frozen=True)
class ValidationFailure:
    errors: tuple[FieldError, ...]
    success: Literal[False] = False

    def details(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.errors]

    def to_error(self, message: str = "Validation failed") -> ValidationError:
        return ValidationError(message, details=self.details())


def _field_errors(exc: pydantic.ValidationError) -> tuple[FieldError, ...]:
    return tuple(
        FieldError(path=tuple(err["loc"]), message=err["msg"], type=err["type"])
        for err in exc.errors(include_url=False)
    )


def safe_parse(schema: type[M], raw: Any) -> ValidationSuccess[M] | ValidationFailure:
    """Validate raw input against schema without raising."""
    try:
        data = schema.model_validate(raw)
    except pydantic.ValidationError as exc:
        return ValidationFailure(errors=_field_errors(exc))
    return ValidationSuccess(data=data)


def parse(schema: type[M], raw: Any, *, message: str = "Validation failed") -> M:
    """Validate raw input against schema.

    Raises:
        ValidationError: listing every failing field in `details`.
    """
    result = safe_parse(schema, raw)
    if isinstance(result, ValidationFailure):
        raise result.to_error(message)
    return result.data


def strip_nulls(obj: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    """Drop every top-level key whose value is None.

    Persisted rows report absent values as NULL while services treat a
    missing key as "not provided". Other keys pass through unchanged.
    Pydantic models are dumped with exclude_unset first, so only fields the
    caller actually sent survive.
    """
    if isinstance(obj, BaseModel):
        obj = obj.model_dump(exclude_unset=True)
    return {key: value for key, value in obj.items() if value is not None}


async def read_json_body(request: Request) -> Any:
    """Return the decoded JSON body, {} when the body is empty."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError("Malformed JSON body") from None


def read_query(request: Request) -> dict[str, str]:
    """Query string as a flat dict (last value wins for repeated keys)."""
    return dict(request.query_params)
