"""Structured error logging.

Used by the error mapper for every 500: the client only sees a generic
message, the log line carries the error code, stack trace, request id,
org id and a redacted request context.
"""

from __future__ import annotations

import logging
import traceback
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class StructuredError:
    """One failed request, as written to the error log.

    Attributes:
        error_code: The UPPER_SNAKE code the client saw in the error envelope
            (INTERNAL_ERROR for unexpected exceptions).
        message: Raw exception text. Never sent to the client for a 500.
        stack_trace: Formatted traceback.
        context: Request method and path, plus anything the caller adds.
            Credential-like keys are redacted in to_dict().
        request_id: Value of X-Request-Id for the failing request.
        org_id: Resolved organization, empty when the failure happened
            before org resolution (bad token, no membership).
    """

    error_code: str
    message: str
    stack_trace: str
    context: dict[str, Any] = field(default_factory=dict)
    request_id: str = ""
    org_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict suitable for JSON logging."""
        d = asdict(self)
        d["context"] = _redact_sensitive(d["context"])
        return d


_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "token",
        "secret",
        "api_key",
        "authorization",
        "cookie",
        "jwt",
        "stripe_key",
    }
)


def _redact_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in _SENSITIVE_KEYS:
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = _redact_sensitive(value)
        else:
            result[key] = value
    return result


def create_structured_error(
    exc: BaseException,
    *,
    error_code: str = "",
    request_id: str = "",
    org_id: str = "",
    context: dict[str, Any] | None = None,
) -> StructuredError:
    """Create a StructuredError from an exception.

    A `.code` attribute on the exception (PravadoError subclasses) is used
    as the error_code unless overridden.
    """
    code = error_code or getattr(exc, "code", type(exc).__name__)
    stack = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return StructuredError(
        error_code=code,
        message=str(exc),
        stack_trace="".join(stack),
        context=context or {},
        request_id=request_id,
        org_id=org_id,
    )


def log_structured_error(
    logger: logging.Logger,
    exc: BaseException,
    *,
    error_code: str = "",
    request_id: str = "",
    org_id: str = "",
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> StructuredError:
    """Log an exception as a structured error and return it.

    The full payload rides on the record as the `structured_error` extra for
    JSON formatters. The message itself names the code, request id and org id
    so the plain formatter configured in src.main stays useful.
    """
    structured = create_structured_error(
        exc,
        error_code=error_code,
        request_id=request_id,
        org_id=org_id,
        context=context,
    )
    logger.log(
        level,
        "structured_error code=%s request_id=%s org_id=%s",
        structured.error_code,
        structured.request_id or "-",
        structured.org_id or "-",
        extra={"structured_error": structured.to_dict()},
    )
    return structured
