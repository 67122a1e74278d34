"""
Tests for helper utilities.
"""

import random

import pytest

from game import Player
from utils.helpers import (
    get_effective_room_id, is_global_room, calculate_imposter_count, shuffle_players,
    format_time_duration, get_player_display_name, sanitize_message, validate_group_link
)


class TestRooms:

    def test_private_chats_share_global_room(self):
        assert get_effective_room_id(111, True) == "global"
        assert get_effective_room_id(222, True) == "global"
        assert is_global_room(get_effective_room_id(333, True))

    def test_group_chat_uses_its_id(self):
        assert get_effective_room_id(-100123, False) == "-100123"
        assert not is_global_room("-100123")


class TestHelpers:

    @pytest.mark.parametrize("players,expected", [(0, 1), (1, 1), (4, 1), (8, 2), (9, 2), (16, 4)])
    def test_calculate_imposter_count(self, players, expected):
        assert calculate_imposter_count(players) == expected

    def test_shuffle_returns_copy(self):
        players = ["a", "b", "c", "d", "e"]
        shuffled = shuffle_players(players, random.Random(9))

        assert sorted(shuffled) == players
        assert players == ["a", "b", "c", "d", "e"]

    @pytest.mark.parametrize("seconds,expected", [(45, "45s"), (120, "2m"), (150, "2m 30s"), (3600, "1h")])
    def test_format_time_duration(self, seconds, expected):
        assert format_time_duration(seconds) == expected

    def test_display_name(self):
        assert get_player_display_name(Player(id="1", display_name="Ann", username="ann")) == "@ann"
        assert get_player_display_name(Player(id="2", display_name="Ben")) == "Ben"
        assert get_player_display_name(Player(id="3", display_name="")) == "User3"

    def test_sanitize_message(self):
        assert sanitize_message("  hello\n\n  <i>world</i> ") == "hello world"
        assert sanitize_message("x" * 600).endswith("...")

    def test_validate_group_link(self):
        assert validate_group_link("https://chat.example.com/abc") == (True, None)
        assert validate_group_link("")[0] is False
        assert validate_group_link("chat.example.com")[0] is False
        assert validate_group_link("https://chat example.com")[0] is False


class TestSettings:

    def test_render_disables_debug(self, monkeypatch):
        import importlib
        from config import settings

        monkeypatch.setenv('RENDER', 'true')
        try:
            importlib.reload(settings)
            assert settings.IS_RENDER is True
            assert settings.DEBUG is False
        finally:
            monkeypatch.delenv('RENDER')
            importlib.reload(settings)

        assert settings.IS_RENDER is False
