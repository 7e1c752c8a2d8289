from __future__ import annotations

# Root-level conftest.py
# Adapter-specific fixtures live next to their tests:
# - tests/sqlalchemy/conftest.py for the SQLAlchemy adapters
# - tests/redis/conftest.py for the Redis adapters
from collections.abc import Generator

import pytest

from factoria import MemoryAdapter, configure, set_adapter


@pytest.fixture(autouse=True)
def reset_factoria() -> Generator[None, None, None]:
    """Every test starts without a default adapter and with default settings."""
    set_adapter(None)
    try:
        yield
    finally:
        set_adapter(None)
        configure(strict_overrides=True, overflow="error")


@pytest.fixture
def memory_adapter() -> MemoryAdapter:
    """A fresh MemoryAdapter installed as the process-wide default."""
    adapter = MemoryAdapter()
    set_adapter(adapter)
    return adapter
