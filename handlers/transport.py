"""
Socket.IO Chat Transport for the Imposter game.

Delivers direct and room messages over Socket.IO and keeps track of
which sockets belong to which user and who is a member of each room.
"""

import logging
import threading
import uuid
from typing import Dict, Optional, Set

from game.collaborators import ChatTransport, MembershipRole, TransportError
from utils.helpers import is_global_room

logger = logging.getLogger(__name__)

def user_channel(user_id: str) -> str:
    return f"user:{user_id}"

def room_channel(room_id: str) -> str:
    return f"room:{room_id}"

class SocketIOTransport(ChatTransport):
    """
    ChatTransport over Flask-SocketIO.

    Every connected socket joins its user's channel (user:<id>), so a
    direct message reaches all of that user's tabs. A direct message to
    a user with no connected sockets fails with TransportError, the
    same way a chat bot cannot message someone who never opened a
    private chat with it.
    """

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace
        self._lock = threading.Lock()
        self._user_sids: Dict[str, Set[str]] = {}
        self._sid_users: Dict[str, str] = {}
        self._members: Dict[str, Dict[str, MembershipRole]] = {}

    # Connection bookkeeping

    def register_connection(self, user_id: str, sid: str):
        with self._lock:
            self._user_sids.setdefault(user_id, set()).add(sid)
            self._sid_users[sid] = user_id
        logger.debug(f"Socket {sid} registered for user {user_id}")

    def unregister_connection(self, sid: str) -> Optional[str]:
        """Forget a socket; returns the user it belonged to."""
        with self._lock:
            user_id = self._sid_users.pop(sid, None)
            if user_id is not None:
                sids = self._user_sids.get(user_id, set())
                sids.discard(sid)
                if not sids:
                    self._user_sids.pop(user_id, None)
        return user_id

    def is_connected(self, user_id: str) -> bool:
        return bool(self._user_sids.get(user_id))

    # Room membership

    def register_member(self, room_id: str, user_id: str) -> MembershipRole:
        """
        Record a user as a member of a room.

        The first member of a group room becomes its creator.
        """
        with self._lock:
            members = self._members.setdefault(room_id, {})
            if user_id not in members:
                if not members and not is_global_room(room_id):
                    members[user_id] = MembershipRole.CREATOR
                else:
                    members[user_id] = MembershipRole.MEMBER
            return members[user_id]

    def grant_role(self, room_id: str, user_id: str, role: MembershipRole):
        with self._lock:
            self._members.setdefault(room_id, {})[user_id] = role

    def remove_member(self, room_id: str, user_id: str):
        with self._lock:
            self._members.get(room_id, {}).pop(user_id, None)

    # ChatTransport

    def send_direct(self, player_id: str, text: str) -> Optional[str]:
        if not self.is_connected(player_id):
            raise TransportError(f"User {player_id} has no open connection")

        message_id = uuid.uuid4().hex
        self.socketio.emit('direct_message', {
            'message_id': message_id,
            'text': text
        }, room=user_channel(player_id), namespace=self.namespace)
        return message_id

    def send_to_room(self, room_id: str, text: str) -> Optional[str]:
        message_id = uuid.uuid4().hex
        self.socketio.emit('room_message', {
            'message_id': message_id,
            'room_id': room_id,
            'text': text
        }, room=room_channel(room_id), namespace=self.namespace)
        return message_id

    def delete_message(self, room_id: str, message_id: str):
        self.socketio.emit('message_deleted', {
            'message_id': message_id,
            'room_id': room_id
        }, room=room_channel(room_id), namespace=self.namespace)

    def get_membership_role(self, room_id: str, user_id: str) -> MembershipRole:
        return self._members.get(room_id, {}).get(user_id, MembershipRole.OTHER)

    def ban_then_unban(self, room_id: str, user_id: str):
        """Drop every socket of the user from the room; they may rejoin later."""
        sids = list(self._user_sids.get(user_id, ()))
        for sid in sids:
            try:
                self.socketio.server.leave_room(sid, room_channel(room_id), namespace=self.namespace)
            except Exception as e:
                raise TransportError(f"Failed to remove {user_id} from room {room_id}: {e}") from e

        self.remove_member(room_id, user_id)
        if sids:
            self.socketio.emit('removed_from_room', {
                'room_id': room_id
            }, room=user_channel(user_id), namespace=self.namespace)
        logger.info(f"Removed user {user_id} from room {room_id}")
