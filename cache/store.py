"""
Redis Session Store for the Imposter game.

Persists each room's session as a JSON document under
imposter:session:<room_id>.
"""

import logging
from typing import Dict, Optional

from .client import RedisClient
from game.collaborators import SessionStore, PersistenceError
from game.models import Session

logger = logging.getLogger(__name__)

class RedisKeys:
    """Redis key patterns."""
    SESSION = "imposter:session:{room_id}"
    SESSION_PATTERN = "imposter:session:*"

    @classmethod
    def session(cls, room_id: str) -> str:
        return cls.SESSION.format(room_id=room_id)

    @classmethod
    def room_id_from_key(cls, key: str) -> str:
        return key.split(":", 2)[2]

class RedisSessionStore(SessionStore):
    """SessionStore backed by Redis."""

    def __init__(self, redis_client: RedisClient):
        """
        Raises:
            PersistenceError: if Redis is not reachable
        """
        if not redis_client.is_connected():
            raise PersistenceError("Redis is not available")
        self.redis = redis_client
        logger.info("Redis session store ready")

    def load(self, room_id: str) -> Optional[Session]:
        data = self.redis.get_json(RedisKeys.session(room_id))
        if not isinstance(data, dict):
            return None
        return self._deserialize(room_id, data)

    def save(self, room_id: str, session: Session):
        if not self.redis.set_json(RedisKeys.session(room_id), session.to_dict()):
            raise PersistenceError(f"Failed to save session for room {room_id}")
        logger.debug(f"Saved session for room {room_id}")

    def delete(self, room_id: str):
        if self.redis.delete(RedisKeys.session(room_id)):
            logger.info(f"Deleted session for room {room_id}")

    def load_all(self) -> Dict[str, Session]:
        sessions = {}
        for key in self.redis.scan_keys(RedisKeys.SESSION_PATTERN):
            room_id = RedisKeys.room_id_from_key(key)
            session = self.load(room_id)
            if session:
                sessions[room_id] = session
        logger.info(f"Loaded {len(sessions)} sessions from Redis")
        return sessions

    def _deserialize(self, room_id: str, data: dict) -> Optional[Session]:
        try:
            return Session.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse stored session for room {room_id}: {e}")
            return None
