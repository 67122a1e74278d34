"""
Database Models for the Imposter game.

Contains the SQLAlchemy model used to persist game sessions.
Pure data models with no business logic.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import declarative_base

# Create the base class for models
Base = declarative_base()

class StoredSession(Base):
    """One room's serialized game session."""

    __tablename__ = 'game_sessions'

    room_id = Column(String(100), primary_key=True)
    data = Column(Text, nullable=False)  # JSON from Session.to_dict()

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<StoredSession(room_id='{self.room_id}')>"
