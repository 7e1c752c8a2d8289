from __future__ import annotations

# Redis adapter test fixtures
# These tests need a redis server on localhost:6379 and are skipped without one.
import uuid
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from redis import Redis
from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from factoria.adapters.redis import AsyncRedisAdapter, RedisAdapter

REDIS_HOST = "localhost"
REDIS_PORT = 6379


@pytest.fixture(scope="function")
def key_prefix() -> str:
    """Unique key prefix so tests never see each other's documents."""
    return f"test-{uuid.uuid4().hex}"


@pytest.fixture(scope="function")
def redis_client(key_prefix: str) -> Generator[Redis, None, None]:
    client = Redis(host=REDIS_HOST, port=REDIS_PORT, db=0, decode_responses=True)
    try:
        client.ping()
    except RedisConnectionError:
        client.close()
        pytest.skip(f"Redis is not available on {REDIS_HOST}:{REDIS_PORT}")
    try:
        yield client
    finally:
        for key in client.scan_iter(f"{key_prefix}:*"):
            client.delete(key)
        client.close()


@pytest.fixture(scope="function")
def redis_adapter(redis_client: Redis, key_prefix: str) -> RedisAdapter:
    return RedisAdapter(redis_client, key_prefix=key_prefix)


@pytest_asyncio.fixture(scope="function")
async def async_redis_client(key_prefix: str) -> AsyncGenerator[AsyncRedis, None]:
    client = AsyncRedis(host=REDIS_HOST, port=REDIS_PORT, db=0, decode_responses=True)
    try:
        await client.ping()
    except RedisConnectionError:
        await client.aclose()
        pytest.skip(f"Redis is not available on {REDIS_HOST}:{REDIS_PORT}")
    try:
        yield client
    finally:
        async for key in client.scan_iter(f"{key_prefix}:*"):
            await client.delete(key)
        await client.aclose()


@pytest_asyncio.fixture(scope="function")
async def async_redis_adapter(
    async_redis_client: AsyncRedis, key_prefix: str
) -> AsyncRedisAdapter:
    return AsyncRedisAdapter(async_redis_client, key_prefix=key_prefix)
