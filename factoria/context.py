from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Optional

from factoria.association import Association
from factoria.errors import AssociationResolutionError

if TYPE_CHECKING:
    from factoria.adapters.base import BaseAdapter

logger = logging.getLogger(__name__)

Mode = Literal["build", "create"]


@dataclass
class ResolutionContext:
    """Memo of one top-level build or create.

    Results are keyed by association handle, so every read of the same
    association within the invocation sees the same object.
    """

    memo: dict[int, Any] = field(default_factory=dict)
    pending: set[int] = field(default_factory=set)

    async def resolve(
        self,
        association: Association[Any],
        mode: Mode,
        adapter: Optional[BaseAdapter],
    ) -> Any:
        handle = association.handle
        if handle in self.memo:
            logger.debug("Reusing %r", association)
            return association.project(self.memo[handle])

        if handle in self.pending:
            raise AssociationResolutionError(
                f"{association!r} depends on itself; factory '{association.factory.name}' "
                "cannot be resolved."
            )

        target = association.factory
        self.pending.add(handle)
        try:
            value = await target._execute(
                self,
                association.strategy or mode,
                association.overrides,
                target.adapter or adapter,
            )
        except Exception as error:
            error.add_note(f"while resolving {association!r}")
            raise
        finally:
            self.pending.discard(handle)

        self.memo[handle] = value
        logger.debug("Resolved %r", association)
        return association.project(value)
