from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

OverflowPolicy = Literal["error", "truncate"]


class Settings(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    # reject override keys the model does not declare
    strict_overrides: bool = True
    # what create_many/build_many do with overrides beyond n
    overflow: OverflowPolicy = "error"


settings = Settings()


def configure(**options: Any) -> Settings:
    """Update the process-wide settings in place.

    Values are validated before anything is applied, so a bad option leaves the
    current settings untouched.
    """
    validated = Settings.model_validate(settings.model_dump() | options)
    for name in options:
        setattr(settings, name, getattr(validated, name))
    return settings
