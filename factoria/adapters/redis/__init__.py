"""Redis adapters for factoria - sync and async client support."""

from factoria.adapters.redis.base import AsyncRedisAdapter, RedisAdapter

__all__ = ["RedisAdapter", "AsyncRedisAdapter"]
