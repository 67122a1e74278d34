"""
Redis Cache Module for the Imposter game.

Optional session storage backend; selected with SESSION_BACKEND=redis.
"""

from .client import RedisClient
from .store import RedisSessionStore, RedisKeys

__all__ = [
    'RedisClient',
    'RedisSessionStore',
    'RedisKeys'
]
