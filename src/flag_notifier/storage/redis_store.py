"""Redis Snapshot Backend

Stores the flag snapshot in Redis, so several notifier processes for the
same student (e.g. one per open tab) share one baseline.
"""

import logging
import os
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from flag_notifier.errors import PersistenceError
from flag_notifier.storage.kv_store import KeyValueStore
from flag_notifier.utils import service_startup_retry

logger = logging.getLogger(__name__)


@service_startup_retry
async def _verify_redis_connection(client: Redis) -> None:
    """Verify Redis connection with retry logic.

    Args:
        client: Redis client to verify

    Raises:
        Exception: If connection fails after retries
    """
    await client.ping()
    logger.info("Redis connection verified")


async def get_redis_client(
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: Optional[int] = None,
    password: Optional[str] = None,
    health_check_interval: int = 30,
) -> Redis:
    """Get a standalone Redis client and verify the connection.

    Args:
        host: Redis host (default from REDIS_HOST env)
        port: Redis port (default from REDIS_PORT env)
        db: Database index (default from REDIS_DB env)
        password: Redis password (default from REDIS_PASSWORD env)
        health_check_interval: Health check interval in seconds (default: 30)

    Returns:
        Async Redis client with decoded string responses

    Raises:
        ConnectionError: If Redis connection fails after retries
    """
    redis_host = host or os.getenv("REDIS_HOST", "localhost")
    redis_port = port if port is not None else int(os.getenv("REDIS_PORT", "6379"))
    db_index = db if db is not None else int(os.getenv("REDIS_DB", "0"))
    password = password or os.getenv("REDIS_PASSWORD")

    logger.info(f"Connecting to standalone Redis: {redis_host}:{redis_port}/{db_index}")

    redis_client = Redis(
        host=redis_host,
        port=redis_port,
        db=db_index,
        password=password,
        decode_responses=True,
        socket_keepalive=True,
        health_check_interval=health_check_interval,
        socket_connect_timeout=5,
    )

    await _verify_redis_connection(redis_client)

    logger.info(f"Redis connection established: {redis_host}:{redis_port}/{db_index}")
    return redis_client


class RedisKeyValueStore(KeyValueStore):
    """Key-value store on a Redis client.

    Keys are prefixed with a namespace so the snapshot can share a
    database with other services.

    Usage:
        client = await get_redis_client()
        store = RedisKeyValueStore(client, namespace="flag_notifier:student-42")
    """

    def __init__(self, client: Redis, namespace: str = "flag_notifier"):
        self.client = client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.client.get(self._key(key))
        except RedisError as e:
            raise PersistenceError(f"Redis GET {self._key(key)} failed: {e}") from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self.client.set(self._key(key), value)
        except RedisError as e:
            raise PersistenceError(f"Redis SET {self._key(key)} failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(self._key(key))
        except RedisError as e:
            raise PersistenceError(f"Redis DEL {self._key(key)} failed: {e}") from e

    async def close(self) -> None:
        await self.client.aclose()
