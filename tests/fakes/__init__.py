"""Shared Fake adapters for testing without unittest.mock.

Real Python classes with preset return values, no AsyncMock/MagicMock.
"""

from tests.fakes.session import FakeAsyncSession, FakeResult, FakeSessionFactory

__all__ = [
    "FakeAsyncSession",
    "FakeResult",
    "FakeSessionFactory",
]
