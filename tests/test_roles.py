"""
Tests for role assignment.

Tests:
- Imposter counts and selection
- Topic provider and fallback vocabulary
"""

import random
from collections import Counter

import pytest

from game import RoleAssignmentEngine, Player, SessionSettings, ErrorKind
from utils.constants import BASE_TOPICS, CATEGORIES

from conftest import FakeTopicProvider


def make_roster(count):
    return [Player(id=f"p{i}", display_name=f"Player {i}") for i in range(1, count + 1)]


class TestImposterSelection:

    @pytest.mark.parametrize("players,expected", [
        (1, 1), (3, 1), (4, 1), (7, 1), (8, 2), (11, 2), (12, 3), (20, 5),
    ])
    def test_imposter_count(self, players, expected):
        engine = RoleAssignmentEngine(rng=random.Random(1))
        result = engine.prepare(make_roster(players), SessionSettings(min_players=1))

        assert result.success
        assert len(result.data['assignment'].imposters) == expected

    def test_imposters_are_distinct_roster_members(self):
        roster = make_roster(12)
        engine = RoleAssignmentEngine(rng=random.Random(7))

        imposters = engine.prepare(roster, SessionSettings()).data['assignment'].imposters

        assert len(set(imposters)) == len(imposters)
        assert set(imposters) <= {p.id for p in roster}

    def test_insufficient_players(self):
        engine = RoleAssignmentEngine()
        result = engine.prepare(make_roster(3), SessionSettings(min_players=4))

        assert not result.success
        assert result.error == ErrorKind.INSUFFICIENT_PLAYERS
        assert result.data == {'required': 4, 'current': 3}

    def test_selection_is_roughly_uniform(self):
        engine = RoleAssignmentEngine(rng=random.Random(1234))
        ids = ["a", "b", "c", "d"]

        counts = Counter(engine.select_imposters(ids)[0] for _ in range(4000))

        assert set(counts) == set(ids)
        for player_id in ids:
            assert 850 < counts[player_id] < 1150

    def test_roster_is_not_mutated(self):
        roster = make_roster(8)
        before = [p.id for p in roster]

        RoleAssignmentEngine(rng=random.Random(3)).prepare(roster, SessionSettings())

        assert [p.id for p in roster] == before


class TestTopicSelection:

    def test_provider_topic_is_used(self):
        provider = FakeTopicProvider(topic="Mango")
        engine = RoleAssignmentEngine(topic_provider=provider, rng=random.Random(5))

        assignment = engine.prepare(make_roster(4), SessionSettings()).data['assignment']

        assert assignment.topic == "Mango"
        assert assignment.source == "provider"
        assert assignment.category in CATEGORIES
        assert provider.categories == [assignment.category]

    def test_fallback_when_provider_returns_nothing(self):
        engine = RoleAssignmentEngine(topic_provider=FakeTopicProvider(topic=None), rng=random.Random(5))

        assignment = engine.prepare(make_roster(4), SessionSettings()).data['assignment']

        assert assignment.topic in BASE_TOPICS
        assert assignment.source == "fallback"

    def test_fallback_when_provider_raises(self):
        provider = FakeTopicProvider(error=TimeoutError("no answer within 10s"))
        engine = RoleAssignmentEngine(topic_provider=provider, rng=random.Random(5))

        result = engine.prepare(make_roster(4), SessionSettings())

        assert result.success
        assert result.data['assignment'].topic in BASE_TOPICS

    def test_disabled_provider_is_not_called(self):
        provider = FakeTopicProvider(topic="Mango", enabled=False)
        engine = RoleAssignmentEngine(topic_provider=provider)

        topic, source, category = engine.select_topic()

        assert provider.categories == []
        assert topic in BASE_TOPICS
        assert source == "fallback"
        assert category is None
