"""Unit-test fixtures."""

from unittest.mock import AsyncMock

import pytest

from tests.unit.fakes import FakeClock, InMemoryMarketRepository


@pytest.fixture
def db() -> AsyncMock:
    """Stand-in AsyncSession: only commit/rollback are awaited by services."""
    return AsyncMock()


@pytest.fixture
def repo() -> InMemoryMarketRepository:
    return InMemoryMarketRepository()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
