"""Tests for request id propagation via contextvars.

- request id set at gateway entry (X-Request-ID or generated)
- readable anywhere below via get_request_id()
- restored on scope exit, isolated across concurrent tasks
"""

from __future__ import annotations

import asyncio
from uuid import UUID

from src.shared.trace_context import (
    REQUEST_ID_HEADER,
    current_request_id,
    get_request_id,
    request_context,
    set_request_id,
)


class TestGetSetRequestId:
    """Basic get/set operations on the request id context var."""

    def test_default_is_empty_string(self) -> None:
        token = set_request_id("")
        try:
            assert get_request_id() == ""
        finally:
            current_request_id.reset(token)

    def test_set_and_get(self) -> None:
        token = set_request_id("abc-123")
        try:
            assert get_request_id() == "abc-123"
        finally:
            current_request_id.reset(token)

    def test_header_name(self) -> None:
        assert REQUEST_ID_HEADER == "X-Request-ID"


class TestRequestContextManager:
    """The request_context() context manager scopes the id."""

    def test_sets_id_within_scope(self) -> None:
        with request_context("scope-1") as rid:
            assert rid == "scope-1"
            assert get_request_id() == "scope-1"

    def test_restores_previous_on_exit(self) -> None:
        with request_context("outer"):
            with request_context("inner"):
                assert get_request_id() == "inner"
            assert get_request_id() == "outer"

    def test_generates_uuid_when_none(self) -> None:
        with request_context() as rid:
            assert UUID(rid).version == 4

    def test_generates_uuid_when_empty(self) -> None:
        with request_context("") as rid:
            assert rid != ""
            assert UUID(rid).version == 4

    def test_restores_on_exception(self) -> None:
        with request_context("outer"):
            try:
                with request_context("failing"):
                    raise RuntimeError("boom")
            except RuntimeError:
                pass
            assert get_request_id() == "outer"


class TestAsyncIsolation:
    """Concurrent tasks see their own request id."""

    async def test_tasks_do_not_leak(self) -> None:
        async def worker(rid: str) -> str:
            with request_context(rid):
                await asyncio.sleep(0)
                return get_request_id()

        results = await asyncio.gather(worker("a"), worker("b"), worker("c"))
        assert results == ["a", "b", "c"]
