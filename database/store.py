"""
Database Session Store for the Imposter game.

Persists each room's session as a JSON document in the game_sessions
table. All database session management is contained within this module.
"""

import json
import logging
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from .config import create_db_engine, create_session_factory, get_db_session, init_database
from .models import StoredSession
from game.collaborators import SessionStore, PersistenceError
from game.models import Session

logger = logging.getLogger(__name__)

class DatabaseSessionStore(SessionStore):
    """SessionStore backed by SQLAlchemy (SQLite or PostgreSQL)."""

    def __init__(self, database_url: str):
        """
        Create the engine and tables.

        Raises:
            PersistenceError: if the database cannot be initialized
        """
        try:
            self.engine = create_db_engine(database_url)
            self.session_factory = create_session_factory(self.engine)
            init_database(self.engine)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to initialize database: {e}") from e
        logger.info("Database session store ready")

    def load(self, room_id: str) -> Optional[Session]:
        try:
            with get_db_session(self.session_factory) as db:
                row = db.get(StoredSession, room_id)
                if row is None:
                    return None
                data = row.data
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load session for room {room_id}: {e}") from e

        session = self._deserialize(room_id, data)
        if session:
            logger.info(f"Loaded session for room {room_id} with {len(session.players)} players")
        return session

    def save(self, room_id: str, session: Session):
        data = json.dumps(session.to_dict())
        try:
            with get_db_session(self.session_factory) as db:
                row = db.get(StoredSession, room_id)
                if row is None:
                    db.add(StoredSession(room_id=room_id, data=data))
                else:
                    row.data = data
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save session for room {room_id}: {e}") from e
        logger.debug(f"Saved session for room {room_id}")

    def delete(self, room_id: str):
        try:
            with get_db_session(self.session_factory) as db:
                deleted = db.query(StoredSession).filter_by(room_id=room_id).delete()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete session for room {room_id}: {e}") from e
        if deleted:
            logger.info(f"Deleted session for room {room_id}")

    def load_all(self) -> Dict[str, Session]:
        try:
            with get_db_session(self.session_factory) as db:
                rows = [(row.room_id, row.data) for row in db.query(StoredSession).all()]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load sessions: {e}") from e

        sessions = {}
        for room_id, data in rows:
            session = self._deserialize(room_id, data)
            if session:
                sessions[room_id] = session
        logger.info(f"Loaded {len(sessions)} sessions from database")
        return sessions

    def _deserialize(self, room_id: str, data: str) -> Optional[Session]:
        """Skip (and log) rows that no longer parse."""
        try:
            return Session.from_dict(json.loads(data))
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse stored session for room {room_id}: {e}")
            return None
