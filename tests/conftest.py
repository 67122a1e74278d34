"""
Pytest fixtures for Imposter game tests.
"""

import random
import pytest

from game import (
    GameSessionController, SessionRegistry, RoleAssignmentEngine, VotingCoordinator,
    SessionStore, ChatTransport, TopicProvider, MembershipRole,
    PersistenceError, TransportError, Session
)

ADMIN_SECRET = "s3cret"
GROUP_ROOM = "-100123"


class InMemoryStore(SessionStore):
    """SessionStore that keeps serialized sessions in a dict."""

    def __init__(self):
        self.documents = {}
        self.fail_saves = False
        self.save_count = 0

    def load(self, room_id):
        data = self.documents.get(room_id)
        return Session.from_dict(data) if data else None

    def save(self, room_id, session):
        if self.fail_saves:
            raise PersistenceError("disk full")
        self.save_count += 1
        self.documents[room_id] = session.to_dict()

    def delete(self, room_id):
        self.documents.pop(room_id, None)

    def load_all(self):
        return {room_id: Session.from_dict(data) for room_id, data in self.documents.items()}


class FakeTransport(ChatTransport):
    """Records every message instead of delivering it."""

    def __init__(self):
        self.direct_messages = []   # (player_id, text)
        self.room_messages = []     # (room_id, text)
        self.deleted = []           # (room_id, message_id)
        self.banned = []            # (room_id, user_id)
        self.roles = {}             # (room_id, user_id) -> MembershipRole
        self.unreachable = set()
        self.role_lookup_fails = False

    def send_direct(self, player_id, text):
        if player_id in self.unreachable:
            raise TransportError(f"cannot reach {player_id}")
        self.direct_messages.append((player_id, text))
        return f"d{len(self.direct_messages)}"

    def send_to_room(self, room_id, text):
        self.room_messages.append((room_id, text))
        return f"m{len(self.room_messages)}"

    def delete_message(self, room_id, message_id):
        self.deleted.append((room_id, message_id))

    def get_membership_role(self, room_id, user_id):
        if self.role_lookup_fails:
            raise TransportError("chat API unavailable")
        return self.roles.get((room_id, user_id), MembershipRole.MEMBER)

    def ban_then_unban(self, room_id, user_id):
        self.banned.append((room_id, user_id))

    def messages_for(self, player_id):
        return [text for recipient, text in self.direct_messages if recipient == player_id]


class ManualScheduler:
    """Collects scheduled callbacks so tests decide when timers fire."""

    def __init__(self):
        self.scheduled = []  # (delay, callback)

    def __call__(self, delay, callback):
        self.scheduled.append((delay, callback))

    def fire(self, index=-1):
        self.scheduled[index][1]()


class FakeTopicProvider(TopicProvider):

    def __init__(self, topic=None, enabled=True, error=None):
        self.topic = topic
        self.enabled = enabled
        self.error = error
        self.categories = []

    def is_enabled(self):
        return self.enabled

    def generate(self, category):
        self.categories.append(category)
        if self.error:
            raise self.error
        return self.topic


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def transport():
    transport = FakeTransport()
    transport.roles[(GROUP_ROOM, "admin")] = MembershipRole.CREATOR
    return transport


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def registry(store):
    return SessionRegistry(store)


@pytest.fixture
def controller(registry, transport, scheduler):
    """Controller with a seeded engine and a manual tally timer."""
    return GameSessionController(
        registry=registry,
        transport=transport,
        admin_secret=ADMIN_SECRET,
        role_engine=RoleAssignmentEngine(rng=random.Random(42)),
        voting=VotingCoordinator(scheduler=scheduler)
    )


@pytest.fixture
def lobby(controller):
    """Group room with four joined players: p1..p4."""
    for i in range(1, 5):
        result = controller.join(GROUP_ROOM, f"p{i}", f"Player {i}")
        assert result.success
    return controller.registry.get(GROUP_ROOM)


@pytest.fixture
def active_game(controller, lobby):
    """Distributed game in GROUP_ROOM where p1 is the only imposter."""
    result = controller.distribute(GROUP_ROOM, "admin")
    assert result.success
    lobby.imposters = ["p1"]
    return lobby
