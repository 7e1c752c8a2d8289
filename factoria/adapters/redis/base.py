"""Redis adapters for factoria.

Instances are stored as JSON documents under ``{prefix}:{Model}:{id}``;
identifiers come from an ``INCR`` counter kept at ``{prefix}:{Model}:__id__``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

from redis import Redis
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from factoria.adapters.base import BaseAdapter, ModelTag
from factoria.errors import PersistenceError
from factoria.utils import dump, get_value, instance_model_name, model_name, set_value

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _RedisKeys:
    key_prefix: str
    identifier_field: str

    def _make_key(self, name: str, identifier: Any) -> str:
        return f"{self.key_prefix}:{name}:{identifier}"

    def _sequence_key(self, name: str) -> str:
        return self._make_key(name, "__id__")

    def _payload(self, instance: Any) -> str:
        return json.dumps(dump(instance), default=str)


class RedisAdapter(_RedisKeys, BaseAdapter):
    def __init__(
        self,
        client: Redis,
        *,
        key_prefix: str = "factoria",
        identifier_field: str = "id",
        ttl: int | None = None,
    ) -> None:
        """
        Args:
            client: Connected redis client
            key_prefix: Prefix for all keys written by the adapter
            identifier_field: Field receiving the generated identifier
            ttl: Expiry in seconds for saved documents (default: None - no expiration)
        """
        super().__init__()
        self.client = client
        self.key_prefix = key_prefix
        self.identifier_field = identifier_field
        self.ttl = ttl

    def save(self, instance: T) -> T:
        name = instance_model_name(instance)
        try:
            identifier = get_value(instance, self.identifier_field, None)
            if identifier is None:
                identifier = self.client.incr(self._sequence_key(name))
                set_value(instance, self.identifier_field, identifier)
            key = self._make_key(name, identifier)
            if self.ttl:
                self.client.setex(key, self.ttl, self._payload(instance))
            else:
                self.client.set(key, self._payload(instance))
        except RedisError as error:
            raise PersistenceError(f"Failed to save {name}: {error}") from error
        logger.debug("Wrote %s", key)
        return instance

    def load(self, model: ModelTag, identifier: Any) -> dict[str, Any] | None:
        data = self.client.get(self._make_key(model_name(model), identifier))
        return json.loads(data) if data else None  # type: ignore[arg-type]


class AsyncRedisAdapter(_RedisKeys, BaseAdapter):
    def __init__(
        self,
        client: AsyncRedis,
        *,
        key_prefix: str = "factoria",
        identifier_field: str = "id",
        ttl: int | None = None,
    ) -> None:
        super().__init__()
        self.client = client
        self.key_prefix = key_prefix
        self.identifier_field = identifier_field
        self.ttl = ttl

    async def save(self, instance: T) -> T:
        name = instance_model_name(instance)
        try:
            identifier = get_value(instance, self.identifier_field, None)
            if identifier is None:
                identifier = await self.client.incr(self._sequence_key(name))
                set_value(instance, self.identifier_field, identifier)
            key = self._make_key(name, identifier)
            if self.ttl:
                await self.client.setex(key, self.ttl, self._payload(instance))
            else:
                await self.client.set(key, self._payload(instance))
        except RedisError as error:
            raise PersistenceError(f"Failed to save {name}: {error}") from error
        logger.debug("Wrote %s", key)
        return instance

    async def load(self, model: ModelTag, identifier: Any) -> dict[str, Any] | None:
        data = await self.client.get(self._make_key(model_name(model), identifier))
        return json.loads(data) if data else None
