from __future__ import annotations

import dataclasses
import inspect
from collections.abc import Mapping
from typing import Any, Awaitable, Coroutine, TypeVar

from pydantic import BaseModel

from factoria.errors import FactoryError

T = TypeVar("T")

MISSING: Any = object()


class Record(dict[str, Any]):
    """Attribute dict produced by factories defined with a string tag."""

    __slots__ = ("model",)

    def __init__(self, model: str, attributes: Mapping[str, Any] | None = None):
        super().__init__(attributes or {})
        self.model = model

    def __repr__(self) -> str:
        return f"{self.model}({dict.__repr__(self)})"


def model_name(model: type[Any] | str) -> str:
    return model if isinstance(model, str) else model.__name__


def instance_model_name(instance: Any) -> str:
    if isinstance(instance, Record):
        return instance.model
    return type(instance).__name__


def get_value(obj: Any, name: str, default: Any = MISSING) -> Any:
    if isinstance(obj, Mapping):
        if name in obj:
            return obj[name]
    elif hasattr(obj, name):
        return getattr(obj, name)
    if default is MISSING:
        raise KeyError(name)
    return default


def set_value(obj: Any, name: str, value: Any) -> None:
    if isinstance(obj, dict):
        obj[name] = value
    else:
        setattr(obj, name, value)


def dump(instance: Any) -> dict[str, Any]:
    """Plain JSON-friendly dict of an instance's scalar and nested values."""
    if isinstance(instance, BaseModel):
        return instance.model_dump(mode="json")
    if dataclasses.is_dataclass(instance) and not isinstance(instance, type):
        return dataclasses.asdict(instance)
    if isinstance(instance, Mapping):
        return dict(instance)
    return {
        name: value for name, value in vars(instance).items() if not name.startswith("_")
    }


async def maybe_await(value: T | Awaitable[T]) -> T:
    if inspect.isawaitable(value):
        return await value
    return value


def run_sync(coroutine: Coroutine[Any, Any, T], alternative: str) -> T:
    """Drive a coroutine that is expected to finish without suspending.

    Producers, transforms and adapters may be written as coroutines; as long as
    none of them waits on real I/O the whole pipeline completes in one step.
    """
    try:
        coroutine.send(None)
    except StopIteration as stop:
        return stop.value
    coroutine.close()
    raise FactoryError(
        f"The factory pipeline had to wait on I/O and cannot run synchronously. "
        f"Use '{alternative}' instead."
    )
