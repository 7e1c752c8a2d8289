from factoria.adapters.base import (
    BaseAdapter,
    MemoryAdapter,
    active_adapter,
    get_adapter,
    set_adapter,
)

__all__ = [
    "BaseAdapter",
    "MemoryAdapter",
    "active_adapter",
    "get_adapter",
    "set_adapter",
]
