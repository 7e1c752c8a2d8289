from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from contextvars import ContextVar, Token
from typing import Any, Awaitable, Optional, Self, TypeVar

from pydantic import BaseModel

from factoria.utils import (
    Record,
    get_value,
    instance_model_name,
    model_name,
    set_value,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ModelTag = type[Any] | str


def instantiate(model: ModelTag, attributes: Mapping[str, Any]) -> Any:
    if isinstance(model, str):
        return Record(model, attributes)
    if isinstance(model, type) and issubclass(model, BaseModel):
        return model.model_validate(dict(attributes))
    return model(**attributes)


class BaseAdapter(ABC):
    """Persistence capability used by ``Factory.create``.

    ``instantiate`` turns a resolved attribute mapping into a model instance
    without touching the backend; ``save`` persists it and fills in the
    identifier and any backend computed fields. ``save`` may return the
    instance directly or an awaitable of it.
    """

    active_tokens: list[Token[Optional[BaseAdapter]]]

    def __init__(self) -> None:
        self.active_tokens = []

    def __enter__(self) -> Self:
        token = active_adapter.set(self)
        self.active_tokens.append(token)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        token = self.active_tokens.pop()
        active_adapter.reset(token)

    def instantiate(self, model: ModelTag, attributes: Mapping[str, Any]) -> Any:
        return instantiate(model, attributes)

    @abstractmethod
    def save(self, instance: T) -> T | Awaitable[T]: ...


class MemoryAdapter(BaseAdapter):
    """Keeps saved instances in per-model dicts and hands out integer ids."""

    store: dict[str, dict[Any, Any]]

    def __init__(self, identifier_field: str = "id") -> None:
        super().__init__()
        self.identifier_field = identifier_field
        self.store = {}
        self._sequences: dict[str, itertools.count[int]] = {}

    def save(self, instance: T) -> T:
        name = instance_model_name(instance)
        identifier = get_value(instance, self.identifier_field, None)
        if identifier is None:
            identifier = next(self._sequences.setdefault(name, itertools.count(1)))
            set_value(instance, self.identifier_field, identifier)
        self.store.setdefault(name, {})[identifier] = instance
        logger.debug("Stored %s with %s=%r", name, self.identifier_field, identifier)
        return instance

    def rows(self, model: ModelTag) -> list[Any]:
        return list(self.store.get(model_name(model), {}).values())

    def get(self, model: ModelTag, identifier: Any) -> Any | None:
        return self.store.get(model_name(model), {}).get(identifier)

    def clear(self) -> None:
        self.store.clear()
        self._sequences.clear()


active_adapter: ContextVar[Optional[BaseAdapter]] = ContextVar(
    "active_adapter", default=None
)

_default_adapter: Optional[BaseAdapter] = None


def set_adapter(adapter: Optional[BaseAdapter]) -> None:
    """Set the process-wide fallback adapter, or clear it with ``None``.

    The fallback is shared by every task and thread; set it once before a batch
    of operations. Use ``with adapter:`` or ``Factory.with_adapter`` to scope an
    adapter instead.
    """
    global _default_adapter
    if adapter is not None and not isinstance(adapter, BaseAdapter):
        raise TypeError(
            f"Expected a BaseAdapter instance, got {type(adapter).__name__}."
        )
    _default_adapter = adapter


def get_adapter() -> Optional[BaseAdapter]:
    adapter = active_adapter.get()
    if adapter is not None:
        return adapter
    return _default_adapter
