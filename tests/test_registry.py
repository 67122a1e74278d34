"""
Tests for the session registry and session serialization.
"""

from game import SessionRegistry, Session, Player, VotingRound, GameState

from conftest import InMemoryStore


LEGACY_DOCUMENT = {
    'room_id': "-100777",
    'owner_admin_id': "42",
    'players': [
        {'id': "1", 'display_name': "Ann", 'joined_at': "2024-03-01T10:00:00+00:00"},
        {'id': "2", 'display_name': "Ben"},
    ],
    'imposters': [],
    'topic': "",
    'started': False,
    'settings': {'total_players': 5, 'total_imposters': 1},
}


class TestHydrate:

    def test_legacy_settings_are_migrated(self):
        store = InMemoryStore()
        store.documents["-100777"] = dict(LEGACY_DOCUMENT)
        registry = SessionRegistry(store)

        assert registry.hydrate() == 1

        session = registry.get("-100777")
        assert session.settings.min_players == 4
        assert session.settings.vote_time_seconds == 120
        assert session.settings.online_mode is False
        assert session.promoted_admins == []
        assert session.tracked_message_ids == []

        saved = store.documents["-100777"]
        assert saved['settings'] == {'min_players': 4, 'vote_time_seconds': 120, 'online_mode': False}
        assert saved['tracked_message_ids'] == []

    def test_existing_settings_are_kept(self):
        store = InMemoryStore()
        document = dict(LEGACY_DOCUMENT, settings={'min_players': 6, 'vote_time_seconds': 45, 'online_mode': True})
        store.documents["-100777"] = document
        registry = SessionRegistry(store)

        registry.hydrate()

        settings = registry.get("-100777").settings
        assert (settings.min_players, settings.vote_time_seconds, settings.online_mode) == (6, 45, True)

    def test_string_online_mode_is_parsed(self):
        store = InMemoryStore()
        store.documents["a"] = dict(LEGACY_DOCUMENT, room_id="a", settings={'online_mode': "false"})
        store.documents["b"] = dict(LEGACY_DOCUMENT, room_id="b", settings={'online_mode': "True"})
        registry = SessionRegistry(store)

        registry.hydrate()

        assert registry.get("a").settings.online_mode is False
        assert registry.get("b").settings.online_mode is True
        assert store.documents["a"]['settings']['online_mode'] is False


class TestRegistry:

    def test_get_or_create_loads_from_store(self):
        store = InMemoryStore()
        store.documents["room"] = Session(room_id="room", topic="Pizza").to_dict()
        registry = SessionRegistry(store)

        session = registry.get_or_create("room")

        assert session.topic == "Pizza"
        assert registry.get("room") is session

    def test_get_or_create_creates_and_persists(self):
        store = InMemoryStore()
        registry = SessionRegistry(store)

        session = registry.get_or_create("new-room", owner_admin_id="7")

        assert session.owner_admin_id == "7"
        assert "new-room" in store.documents
        assert registry.count() == 1

    def test_save_failure_is_absorbed(self):
        store = InMemoryStore()
        registry = SessionRegistry(store)
        session = registry.get_or_create("room")
        store.fail_saves = True

        session.topic = "Guitar"

        assert registry.save(session) is False
        assert registry.get("room").topic == "Guitar"

    def test_delete(self):
        store = InMemoryStore()
        registry = SessionRegistry(store)
        registry.get_or_create("room")

        assert registry.delete("room") is True
        assert registry.room_ids() == []
        assert store.documents == {}


class TestSessionDocument:

    def test_voting_round_round_trip(self):
        session = Session(room_id="room", started=True, roles_distributed=True, imposters=["b"])
        session.add_player(Player(id="a", display_name="A"))
        session.add_player(Player(id="b", display_name="B", eliminated=True))
        session.voting_round = VotingRound(votes={"a": "b"})

        document = session.to_dict()
        restored = Session.from_dict(document)

        assert document['voting_round']['votes'] == [{'voter': "a", 'target': "b"}]
        assert restored.voting_round.votes == {"a": "b"}
        assert restored.state == GameState.VOTING
        assert restored.get_player("b").eliminated

    def test_status_projection(self):
        session = Session(room_id="room")
        for i in range(8):
            session.add_player(Player(id=str(i), display_name=f"P{i}"))

        status = session.to_status()

        assert status['state'] == "lobby"
        assert status['total_players'] == 8
        assert status['imposters'] == 2
        assert status['voting_active'] is False
