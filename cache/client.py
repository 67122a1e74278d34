"""
Redis Client for the Imposter game session store.

Thin wrapper over redis-py that stores JSON documents and reports
connection problems as return values instead of exceptions.
"""

import json
import logging
from typing import Any, List, Optional
import redis
from redis.exceptions import ConnectionError, TimeoutError, RedisError

logger = logging.getLogger(__name__)

class RedisClient:
    """Redis client wrapper with error handling."""

    def __init__(self, redis_url: str = 'redis://localhost:6379', client: Optional[redis.Redis] = None):
        """
        Args:
            redis_url: Connection URL, used when no client is given
            client: Pre-built redis client (tests pass a mock here)
        """
        self.redis_url = redis_url
        self.client = client
        self.connected = client is not None
        if client is None:
            self._connect()

    def _connect(self):
        """Establish Redis connection."""
        try:
            self.client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True
            )
            self.client.ping()
            self.connected = True
            logger.info("Redis connection established successfully")
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"Redis connection failed: {e}")
            self.connected = False
            self.client = None

    def is_connected(self) -> bool:
        """Check if Redis is connected and available."""
        if not self.connected or not self.client:
            return False

        try:
            self.client.ping()
            return True
        except (ConnectionError, TimeoutError, RedisError):
            self.connected = False
            return False

    def get_json(self, key: str) -> Optional[Any]:
        """Read and decode a JSON document; None when missing or unreadable."""
        if not self.is_connected():
            logger.debug(f"Redis unavailable, cannot read key: {key}")
            return None

        try:
            value = self.client.get(key)
            return json.loads(value) if value else None
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"Redis get failed for key {key}: {e}")
            return None
        except json.JSONDecodeError:
            logger.error(f"Invalid JSON stored at key {key}")
            return None

    def set_json(self, key: str, document: Any) -> bool:
        """Encode and write a JSON document."""
        if not self.is_connected():
            logger.debug(f"Redis unavailable, cannot write key: {key}")
            return False

        try:
            return bool(self.client.set(key, json.dumps(document)))
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"Redis set failed for key {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        if not self.is_connected():
            return False

        try:
            return bool(self.client.delete(key))
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"Redis delete failed for key {key}: {e}")
            return False

    def scan_keys(self, pattern: str) -> List[str]:
        """All keys matching a glob pattern (SCAN, never KEYS)."""
        if not self.is_connected():
            return []

        try:
            return list(self.client.scan_iter(match=pattern))
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"Redis scan failed for pattern {pattern}: {e}")
            return []
