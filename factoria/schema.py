from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from functools import cache
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, with_config
from sqlalchemy import inspect
from sqlalchemy.orm import Mapper
from typing_extensions import TypedDict

from factoria.config import settings
from factoria.utils import model_name


@cache
def attribute_names(model: type[Any] | str) -> Optional[frozenset[str]]:
    """Attribute names a model declares, or None when it declares no schema."""
    if isinstance(model, str) or not isinstance(model, type):
        return None

    if issubclass(model, BaseModel):
        names = set(model.model_fields)
        names.update(info.alias for info in model.model_fields.values() if info.alias)
        return frozenset(names)

    if dataclasses.is_dataclass(model):
        return frozenset(f.name for f in dataclasses.fields(model))

    mapper = inspect(model, raiseerr=False)
    if isinstance(mapper, Mapper):
        return frozenset(mapper.attrs.keys())

    return None


@cache
def overrides_adapter(model: type[Any] | str) -> Optional[TypeAdapter[Any]]:
    names = attribute_names(model)
    if names is None:
        return None

    # functional TypedDict syntax accepts any key, including names that would
    # clash with BaseModel attributes
    partial = TypedDict(  # type: ignore[misc]
        f"{model_name(model)}Overrides",
        {name: Any for name in names},
        total=False,
    )
    partial = with_config(ConfigDict(extra="forbid"))(partial)
    return TypeAdapter(partial)


def check_overrides(model: type[Any] | str, overrides: Mapping[str, Any]) -> None:
    """Reject override keys the model does not declare.

    Raises pydantic's ValidationError listing every unknown key.
    """
    if not overrides or not settings.strict_overrides:
        return
    adapter = overrides_adapter(model)
    if adapter is not None:
        adapter.validate_python(dict(overrides))
