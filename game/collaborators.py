"""
Collaborator contracts for the game core.

The game core talks to storage, the chat transport and the topic
provider only through these interfaces. Concrete implementations live
in database/, cache/, handlers/ and ai/.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional

from .models import Session

class PersistenceError(Exception):
    """Raised by a session store when a read or write fails."""
    pass

class TransportError(Exception):
    """Raised by a chat transport when delivery or a membership query fails."""
    pass

class MembershipRole(Enum):
    """A user's role in a chat room, as reported by the transport."""
    CREATOR = "creator"
    ADMINISTRATOR = "administrator"
    MEMBER = "member"
    OTHER = "other"

class SessionStore(ABC):
    """Durable mapping from room id to session state."""

    @abstractmethod
    def load(self, room_id: str) -> Optional[Session]:
        """Load one session, or None if the room has none."""

    @abstractmethod
    def save(self, room_id: str, session: Session):
        """Persist a session, replacing any previous state."""

    @abstractmethod
    def delete(self, room_id: str):
        """Remove a room's session. Missing rooms are ignored."""

    @abstractmethod
    def load_all(self) -> Dict[str, Session]:
        """Load every stored session keyed by room id."""

class TopicProvider(ABC):
    """Generates a specific secret topic for a category."""

    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether generation should be attempted at all."""

    @abstractmethod
    def generate(self, category: str) -> Optional[str]:
        """Return a topic for the category, or None when nothing was produced."""

class ChatTransport(ABC):
    """
    Messaging surface the game runs on.

    Every method may raise TransportError; callers log and continue.
    """

    @abstractmethod
    def send_direct(self, player_id: str, text: str) -> Optional[str]:
        """Send a private message to a player. Returns a message handle."""

    @abstractmethod
    def send_to_room(self, room_id: str, text: str) -> Optional[str]:
        """Send a message to a room. Returns a message handle."""

    @abstractmethod
    def delete_message(self, room_id: str, message_id: str):
        """Delete a previously sent room message."""

    @abstractmethod
    def get_membership_role(self, room_id: str, user_id: str) -> MembershipRole:
        """Report the user's role in the room."""

    @abstractmethod
    def ban_then_unban(self, room_id: str, user_id: str):
        """Remove a user from the room without blocking a later rejoin."""
