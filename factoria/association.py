from __future__ import annotations

import itertools
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Generic, Literal, Optional, TypeVar

from factoria.errors import AssociationResolutionError
from factoria.utils import get_value

if TYPE_CHECKING:
    from factoria.base import Factory

A = TypeVar("A")

Strategy = Literal["build", "create"]
STRATEGIES: tuple[Strategy, ...] = ("build", "create")

_handles = itertools.count(1)


@dataclass(frozen=True, eq=False)
class Association(Generic[A]):
    """Deferred result of another factory.

    Placed in an attribute mapping, it is replaced by the associated factory's
    result when the owning factory resolves its attributes. Every projection
    obtained through ``get`` shares the handle of the association it came
    from, so all of them resolve to the one underlying object.
    """

    factory: Factory[Any]
    overrides: Mapping[str, Any] = field(default_factory=dict)
    path: tuple[str, ...] = ()
    strategy: Optional[Strategy] = None
    handle: int = field(default_factory=lambda: next(_handles))

    def __post_init__(self) -> None:
        if self.strategy is not None and self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown association strategy {self.strategy!r}, expected one of {STRATEGIES}."
            )

    def get(self, field: str) -> Association[Any]:
        """Project a field (or a dotted path) of the associated result."""
        if not field:
            raise ValueError("A projected field name must not be empty.")
        return replace(self, path=self.path + tuple(field.split(".")))

    def project(self, value: Any) -> A:
        for name in self.path:
            try:
                value = get_value(value, name)
            except KeyError:
                raise AssociationResolutionError(
                    f"{type(value).__name__} produced by factory '{self.factory.name}' "
                    f"has no field '{name}' to project for {self!r}."
                ) from None
        return value

    def __repr__(self) -> str:
        projection = "".join(f".get({name!r})" for name in self.path)
        return f"<Association #{self.handle} {self.factory.name}{projection}>"
