"""SQLAlchemy adapters for factoria - sync and async session support."""

from factoria.adapters.sqlalchemy.base import AsyncSqlalchemyAdapter, SqlalchemyAdapter

__all__ = ["SqlalchemyAdapter", "AsyncSqlalchemyAdapter"]
