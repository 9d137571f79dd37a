"""
Async Redis client used for read-through caching.
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis

from .logging import setup_logger

logger = setup_logger("site_mapper.redis_client")


class RedisClient:
    """Async Redis client."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        decode_responses: bool = True,
        **kwargs
    ):
        """Initialize Redis client.

        Args:
            host: Redis host
            port: Redis port
            db: Redis database number
            password: Redis password
            decode_responses: Whether to decode byte responses to strings
            **kwargs: Additional arguments passed to redis.asyncio.from_url
        """
        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self.decode_responses = decode_responses
        self.kwargs = kwargs
        self.client: Optional[aioredis.Redis] = None

    async def __aenter__(self) -> "RedisClient":
        """Async context manager entry."""
        if not self.client:
            redis_url = f"redis://{self.host}:{self.port}/{self.db}"
            logger.debug(f"Connecting to Redis at {self.host}:{self.port}/{self.db}")
            self.client = aioredis.from_url(
                redis_url,
                password=self.password or None,
                decode_responses=self.decode_responses,
                **self.kwargs
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def health_check(self) -> bool:
        """Check Redis connection health.

        Returns:
            bool: True if Redis is healthy, False otherwise
        """
        try:
            if not self.client:
                return False
            await self.client.ping()
            return True
        except Exception as e:
            logger.error(f"Redis health check failed: {str(e)}")
            return False

    async def get_json(self, key: str) -> Any:
        """Get a JSON value from Redis, or None when absent."""
        if not self.client:
            raise RuntimeError("Redis client not initialized")
        value = await self.client.get(key)
        return json.loads(value) if value is not None else None

    async def set_json(self, key: str, value: Any, ex: Optional[int] = None) -> None:
        """Store a JSON-serializable value, optionally with an expiry in seconds."""
        if not self.client:
            raise RuntimeError("Redis client not initialized")
        await self.client.set(key, json.dumps(value), ex=ex)
