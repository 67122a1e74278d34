"""
Utilities module for the Imposter game.

This module contains constants and helper functions
used throughout the application.
"""

from .constants import GLOBAL_ROOM_ID, CATEGORIES, BASE_TOPICS, DEFAULT_SETTINGS, WINNER_TYPES
from .helpers import (
    get_effective_room_id,
    calculate_imposter_count,
    shuffle_players,
    format_time_duration,
    get_player_display_name
)

__all__ = [
    'GLOBAL_ROOM_ID',
    'CATEGORIES',
    'BASE_TOPICS',
    'DEFAULT_SETTINGS',
    'WINNER_TYPES',
    'get_effective_room_id',
    'calculate_imposter_count',
    'shuffle_players',
    'format_time_duration',
    'get_player_display_name'
]
