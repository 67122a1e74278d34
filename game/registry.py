"""
Session Registry for the Imposter game.

In-memory source of truth for every room's session during the process
lifetime, backed by a SessionStore for durability. Hydrated once at
startup, then written through after every mutation.
"""

import logging
from typing import Dict, List, Optional

from .collaborators import SessionStore
from .models import Session, utc_now

logger = logging.getLogger(__name__)

class SessionRegistry:
    """Caches sessions by room id and persists every change."""

    def __init__(self, store: SessionStore):
        self.store = store
        self.sessions: Dict[str, Session] = {}  # room_id -> Session

    def hydrate(self) -> int:
        """
        Load all stored sessions and migrate their settings.

        Deserialization already defaults missing settings and drops
        legacy fields; each loaded session is saved back so the store
        holds the current format.

        Returns:
            Number of sessions loaded
        """
        loaded = self.store.load_all()
        for room_id, session in loaded.items():
            self.sessions[room_id] = session
            self.save(session)

        logger.info(f"Loaded {len(loaded)} sessions from storage")
        return len(loaded)

    def get(self, room_id: str) -> Optional[Session]:
        return self.sessions.get(room_id)

    def get_or_create(self, room_id: str, owner_admin_id: Optional[str] = None) -> Session:
        """Get a room's session, loading it from the store or creating it if needed."""
        session = self.sessions.get(room_id)
        if session is not None:
            return session

        try:
            session = self.store.load(room_id)
        except Exception as e:
            logger.error(f"Failed to load session for room {room_id}: {e}")
            session = None

        if session is None:
            session = Session(room_id=room_id, owner_admin_id=owner_admin_id)
            self.sessions[room_id] = session
            self.save(session)
            logger.info(f"Created session for room {room_id}")
        else:
            self.sessions[room_id] = session

        return session

    def save(self, session: Session) -> bool:
        """
        Write a session through to the store.

        Persistence failures are logged; the in-memory session stays
        authoritative.
        """
        session.updated_at = utc_now()
        try:
            self.store.save(session.room_id, session)
            return True
        except Exception as e:
            logger.error(f"Failed to save session for room {session.room_id}: {e}")
            return False

    def replace(self, session: Session) -> Session:
        """Swap in a fresh session object for its room (used by reset)."""
        self.sessions[session.room_id] = session
        try:
            self.store.delete(session.room_id)
        except Exception as e:
            logger.error(f"Failed to delete stored session for room {session.room_id}: {e}")
        self.save(session)
        return session

    def delete(self, room_id: str) -> bool:
        """Drop a room's session from memory and storage."""
        removed = self.sessions.pop(room_id, None) is not None
        try:
            self.store.delete(room_id)
        except Exception as e:
            logger.error(f"Failed to delete stored session for room {room_id}: {e}")
        return removed

    def count(self) -> int:
        return len(self.sessions)

    def room_ids(self) -> List[str]:
        return list(self.sessions.keys())
