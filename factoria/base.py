from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Optional,
    cast,
    TypeAlias,
    TypeVar,
)

from factoria.adapters.base import BaseAdapter, ModelTag, get_adapter, instantiate
from factoria.association import Association, Strategy
from factoria.config import OverflowPolicy, settings
from factoria.context import Mode, ResolutionContext
from factoria.errors import HookError, UndefinedAdapterError
from factoria.schema import check_overrides
from factoria.utils import maybe_await, model_name, run_sync

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Attributes: TypeAlias = Mapping[str, Any]
Overrides: TypeAlias = Optional[Mapping[str, Any]]
Producer: TypeAlias = Callable[[], Attributes | Awaitable[Attributes]]
Hook: TypeAlias = Callable[[Any, BaseAdapter], Any]


@dataclass(frozen=True, eq=False)
class Factory(Generic[T]):
    """Reusable recipe for instances of one model.

    A factory never changes once defined. ``extend``, ``after_create``,
    ``with_adapter`` and ``mutate`` all return a new factory that keeps the
    current one as its parent.
    """

    model: ModelTag
    producer: Optional[Producer] = None
    parent: Optional[Factory[Any]] = None
    hooks: tuple[Hook, ...] = ()
    adapter: Optional[BaseAdapter] = None
    label: Optional[str] = None

    @property
    def name(self) -> str:
        return self.label or model_name(self.model)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    # composition

    def extend(self, producer: Producer) -> Factory[T]:
        """Derive a factory whose extra defaults win over the current ones."""
        if not callable(producer):
            raise TypeError(f"An attribute producer must be callable, got {producer!r}.")
        return replace(self, producer=producer, parent=self)

    def after_create(self, hook: Hook) -> Factory[T]:
        """Derive a factory that runs ``hook(instance, adapter)`` after saving.

        Hooks run in registration order, each seeing what the previous one left
        behind. A hook returning ``None`` keeps the current instance.
        """
        if not callable(hook):
            raise HookError(f"An after_create hook must be callable, got {hook!r}.")
        return replace(self, producer=None, parent=self, hooks=self.hooks + (hook,))

    def with_adapter(self, adapter: BaseAdapter) -> Factory[T]:
        return replace(self, producer=None, parent=self, adapter=adapter)

    def mutate(self, transform: Callable[[T], R | Awaitable[R]]) -> MutatedFactory[R]:
        """Derive a factory that returns ``transform(result)``.

        The whole pipeline of this factory runs first, persistence and hooks
        included; only the returned value changes shape.
        """
        if not callable(transform):
            raise TypeError(f"A mutate transform must be callable, got {transform!r}.")
        return MutatedFactory(
            self.model,
            parent=self,
            adapter=self.adapter,
            label=self.label,
            transform=transform,
        )

    def associate(
        self,
        field: Optional[str] = None,
        overrides: Overrides = None,
        *,
        strategy: Optional[Strategy] = None,
    ) -> Association[Any]:
        """Reference to this factory's result, resolved when the owner resolves.

        Without a ``strategy`` the association is built when its owner is
        built and created when its owner is created.
        """
        association: Association[T] = Association(
            self, dict(overrides or {}), strategy=strategy
        )
        return association.get(field) if field else association

    # resolution

    async def _defaults(self) -> dict[str, Any]:
        attributes = await self.parent._defaults() if self.parent is not None else {}
        if self.producer is not None:
            produced = await maybe_await(self.producer())
            if not isinstance(produced, Mapping):
                raise TypeError(
                    f"The attribute producer of factory '{self.name}' returned "
                    f"{type(produced).__name__}, a mapping is required."
                )
            attributes.update(produced)
        return attributes

    async def _resolve(
        self,
        value: Any,
        context: ResolutionContext,
        mode: Mode,
        adapter: Optional[BaseAdapter],
    ) -> Any:
        if isinstance(value, Association):
            return await context.resolve(value, mode, adapter)
        if isinstance(value, list):
            return [await self._resolve(item, context, mode, adapter) for item in value]
        if isinstance(value, tuple):
            return tuple(
                [await self._resolve(item, context, mode, adapter) for item in value]
            )
        if type(value) is dict:
            return {
                key: await self._resolve(item, context, mode, adapter)
                for key, item in value.items()
            }
        return value

    async def _attributes(
        self,
        context: ResolutionContext,
        mode: Mode,
        overrides: Attributes,
        adapter: Optional[BaseAdapter],
    ) -> dict[str, Any]:
        check_overrides(self.model, overrides)
        attributes = await self._defaults()
        attributes.update(overrides)
        # one at a time: a shared handle must resolve once
        return {
            name: await self._resolve(value, context, mode, adapter)
            for name, value in attributes.items()
        }

    async def _execute(
        self,
        context: ResolutionContext,
        mode: Mode,
        overrides: Attributes,
        adapter: Optional[BaseAdapter],
    ) -> T:
        if mode == "create" and adapter is None:
            raise UndefinedAdapterError(self.name)

        attributes = await self._attributes(context, mode, overrides, adapter)
        if adapter is not None:
            instance = adapter.instantiate(self.model, attributes)
        else:
            instance = instantiate(self.model, attributes)

        if mode == "build":
            logger.debug("Built %s", self.name)
            return instance

        instance = await maybe_await(adapter.save(instance))
        logger.debug("Saved %s through %s", self.name, type(adapter).__name__)
        return await self._run_hooks(instance, adapter)

    async def _run_hooks(self, instance: Any, adapter: BaseAdapter) -> Any:
        for hook in self.hooks:
            logger.debug("Running after_create hook %r on %s", hook, self.name)
            result = await maybe_await(hook(instance, adapter))
            if result is not None:
                instance = result
        return instance

    def _require_adapter(self, adapter: Optional[BaseAdapter]) -> BaseAdapter:
        adapter = adapter or self.adapter or get_adapter()
        if adapter is None:
            raise UndefinedAdapterError(self.name)
        return adapter

    # public operations

    async def attributes(self, overrides: Overrides = None) -> dict[str, Any]:
        """Resolved attribute mapping in build mode, without instantiating."""
        return await self._attributes(
            ResolutionContext(), "build", overrides or {}, self.adapter or get_adapter()
        )

    def attributes_for(self, overrides: Overrides = None) -> dict[str, Any]:
        return run_sync(self.attributes(overrides), "await factory.attributes()")

    async def abuild(self, overrides: Overrides = None) -> T:
        return await self._execute(
            ResolutionContext(), "build", overrides or {}, self.adapter or get_adapter()
        )

    def build(self, overrides: Overrides = None) -> T:
        """Instance with resolved attributes, never saved.

        Associations are built as well unless they were declared with
        ``strategy="create"``.
        """
        return run_sync(self.abuild(overrides), "await factory.abuild()")

    def build_many(
        self,
        n: int,
        overrides_list: Optional[Sequence[Overrides]] = None,
        *,
        overflow: Optional[OverflowPolicy] = None,
    ) -> list[T]:
        return [
            self.build(overrides)
            for overrides in expand_overrides(n, overrides_list, overflow)
        ]

    async def create(
        self,
        overrides: Overrides = None,
        *,
        adapter: Optional[BaseAdapter] = None,
    ) -> T:
        """Resolve, instantiate, save and run the after_create hooks.

        Nothing is rolled back on failure: associations saved before a failing
        save or hook stay saved.
        """
        adapter = self._require_adapter(adapter)
        return await self._execute(ResolutionContext(), "create", overrides or {}, adapter)

    async def create_many(
        self,
        n: int,
        overrides_list: Optional[Sequence[Overrides]] = None,
        *,
        adapter: Optional[BaseAdapter] = None,
        overflow: Optional[OverflowPolicy] = None,
    ) -> list[T]:
        """Create ``n`` instances, the i-th one with ``overrides_list[i]``.

        Every element is resolved in its own context, so no association result
        is shared between elements.
        """
        adapter = self._require_adapter(adapter)
        instances: list[T] = []
        for overrides in expand_overrides(n, overrides_list, overflow):
            instances.append(
                await self._execute(ResolutionContext(), "create", overrides, adapter)
            )
        return instances


@dataclass(frozen=True, eq=False)
class MutatedFactory(Factory[R]):
    transform: Callable[[Any], Any] = field(kw_only=True)

    @property
    def _source(self) -> Factory[Any]:
        # mutate() always sets the parent
        return cast(Factory[Any], self.parent)

    def extend(self, producer: Producer) -> MutatedFactory[R]:
        return replace(self, parent=self._source.extend(producer))

    def after_create(self, hook: Hook) -> MutatedFactory[R]:
        if not callable(hook):
            raise HookError(f"An after_create hook must be callable, got {hook!r}.")
        return replace(self, hooks=self.hooks + (hook,))

    def with_adapter(self, adapter: BaseAdapter) -> MutatedFactory[R]:
        return replace(self, adapter=adapter)

    async def _defaults(self) -> dict[str, Any]:
        return await self._source._defaults()

    async def _attributes(
        self,
        context: ResolutionContext,
        mode: Mode,
        overrides: Attributes,
        adapter: Optional[BaseAdapter],
    ) -> dict[str, Any]:
        return await self._source._attributes(context, mode, overrides, adapter)

    async def _execute(
        self,
        context: ResolutionContext,
        mode: Mode,
        overrides: Attributes,
        adapter: Optional[BaseAdapter],
    ) -> R:
        result = await self._source._execute(context, mode, overrides, adapter)
        mutated = await maybe_await(self.transform(result))
        if mode == "create" and self.hooks:
            mutated = await self._run_hooks(mutated, cast(BaseAdapter, adapter))
        return mutated


def expand_overrides(
    n: int,
    overrides_list: Optional[Sequence[Overrides]],
    overflow: Optional[OverflowPolicy] = None,
) -> list[Attributes]:
    """Overrides for each of ``n`` elements; missing or ``None`` entries mean none."""
    if n < 0:
        raise ValueError(f"Cannot produce a negative number of instances ({n}).")
    overrides_list = list(overrides_list or [])
    if len(overrides_list) > n and (overflow or settings.overflow) == "error":
        raise ValueError(
            f"Got {len(overrides_list)} overrides for {n} instances; "
            "pass overflow='truncate' to ignore the extra ones."
        )
    return [
        dict(overrides_list[i] or {}) if i < len(overrides_list) else {}
        for i in range(n)
    ]


def define(
    model: ModelTag,
    producer: Producer,
    *,
    adapter: Optional[BaseAdapter] = None,
    name: Optional[str] = None,
) -> Factory[Any]:
    """Define a factory for ``model`` with default attributes from ``producer``.

    ``model`` is any class constructible from keyword attributes (pydantic
    models, dataclasses, SQLAlchemy mapped classes...) or a plain string tag,
    in which case instances are dict records.
    """
    if not callable(producer):
        raise TypeError(f"An attribute producer must be callable, got {producer!r}.")
    return Factory(model, producer, adapter=adapter, label=name)
