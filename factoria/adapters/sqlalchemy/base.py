from __future__ import annotations

import logging
from typing import Any, TypeVar

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from factoria.adapters.base import BaseAdapter
from factoria.errors import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def column_keys(instance: Any) -> list[str]:
    # relationships are left alone, refreshing them would fire lazy loads
    return [attr.key for attr in inspect(type(instance)).column_attrs]


class SqlalchemyAdapter(BaseAdapter):
    """Saves mapped instances through a sync ``Session``.

    Instances are added and flushed, never committed; the session owner decides
    when the transaction ends.
    """

    def __init__(self, session: Session, *, refresh: bool = True) -> None:
        super().__init__()
        self.session = session
        self.refresh = refresh

    def save(self, instance: T) -> T:
        try:
            self.session.add(instance)
            self.session.flush()
            if self.refresh:
                self.session.refresh(instance, attribute_names=column_keys(instance))
        except SQLAlchemyError as error:
            raise PersistenceError(
                f"Failed to save {type(instance).__name__}: {error}"
            ) from error
        logger.debug("Flushed %r", instance)
        return instance


class AsyncSqlalchemyAdapter(BaseAdapter):
    """Saves mapped instances through an ``AsyncSession``."""

    def __init__(self, session: AsyncSession, *, refresh: bool = True) -> None:
        super().__init__()
        self.session = session
        self.refresh = refresh

    async def save(self, instance: T) -> T:
        try:
            self.session.add(instance)
            await self.session.flush()
            if self.refresh:
                await self.session.refresh(
                    instance, attribute_names=column_keys(instance)
                )
        except SQLAlchemyError as error:
            raise PersistenceError(
                f"Failed to save {type(instance).__name__}: {error}"
            ) from error
        logger.debug("Flushed %r", instance)
        return instance
