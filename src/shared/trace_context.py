"""Request-id propagation via contextvars.

- Gateway sets request_id on request entry (X-Request-ID or generated)
- Handlers, services and the error mapper read it via get_request_id()
- Uses Python contextvars: zero dependency, async-safe
"""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003 -- used at runtime by contextmanager
from contextlib import contextmanager
from contextvars import ContextVar, Token
from uuid import uuid4

REQUEST_ID_HEADER = "X-Request-ID"

current_request_id: ContextVar[str] = ContextVar("current_request_id", default="")


def get_request_id() -> str:
    """Return the current request id (empty string outside a request)."""
    return current_request_id.get()


def set_request_id(request_id: str) -> Token[str]:
    """Set the request id for the current context. Returns a reset token."""
    return current_request_id.set(request_id)


@contextmanager
def request_context(request_id: str | None = None) -> Generator[str, None, None]:
    """Scoped request id.

    Sets the id for the duration of the `with` block, then restores the
    previous value. A UUID4 is generated when request_id is None or empty.

    Usage::

        with request_context(request.headers.get(REQUEST_ID_HEADER)) as rid:
            ...
    """
    effective_id = request_id if request_id else str(uuid4())
    token = current_request_id.set(effective_id)
    try:
        yield effective_id
    finally:
        current_request_id.reset(token)
