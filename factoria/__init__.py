"""
factoria - Test fixture factories for pydantic, dataclass and SQLAlchemy models.

Declare a model's default attributes once, then build or create instances with
overrides, wire associations between factories and post-process results
through pluggable persistence adapters.
"""

__version__ = "0.1.0"
__author__ = "factoria"
__email__ = "factoria@example.com"

from factoria.adapters.base import (
    BaseAdapter,
    MemoryAdapter,
    get_adapter,
    set_adapter,
)
from factoria.association import Association
from factoria.base import Factory, MutatedFactory, define
from factoria.config import Settings, configure, settings
from factoria.context import ResolutionContext
from factoria.errors import (
    AssociationResolutionError,
    FactoryError,
    HookError,
    PersistenceError,
    UndefinedAdapterError,
)
from factoria.utils import Record

__all__ = [
    "Association",
    "AssociationResolutionError",
    "BaseAdapter",
    "Factory",
    "FactoryError",
    "HookError",
    "MemoryAdapter",
    "MutatedFactory",
    "PersistenceError",
    "Record",
    "ResolutionContext",
    "Settings",
    "UndefinedAdapterError",
    "configure",
    "define",
    "get_adapter",
    "set_adapter",
    "settings",
]
