"""
Helper utilities for the Imposter game.

This module contains utility functions used throughout the application
for validation, formatting and random selection.
"""

import math
import random
import re
from typing import List, Optional, Sequence, TypeVar
from .constants import GLOBAL_ROOM_ID, IMPOSTER_RATIO, GROUP_LINK_PREFIXES, MAX_BROADCAST_LENGTH

T = TypeVar('T')

def get_effective_room_id(chat_id, is_private: bool) -> str:
    """
    Map a chat to the room that owns its session.

    Private chats all share the global lobby; group chats are keyed
    by their own chat id.
    """
    if is_private:
        return GLOBAL_ROOM_ID
    return str(chat_id)

def is_global_room(room_id: str) -> bool:
    """Check whether a room id is the shared private-chat lobby."""
    return room_id == GLOBAL_ROOM_ID

def calculate_imposter_count(total_players: int) -> int:
    """Imposters are 25% of the roster, rounded down, with a minimum of 1."""
    return max(1, math.floor(total_players * IMPOSTER_RATIO))

def shuffle_players(players: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Shuffle a list of players randomly.

    Uses random.shuffle (Fisher-Yates), so every ordering is equally
    likely and any prefix is a uniformly random subset.

    Args:
        players: Sequence of players or player ids
        rng: Optional random generator (defaults to the module-level one)

    Returns:
        Shuffled copy of the players
    """
    shuffled = list(players)
    (rng or random).shuffle(shuffled)
    return shuffled

def format_time_duration(seconds: int) -> str:
    """
    Format a duration in seconds to a human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        remaining_seconds = seconds % 60
        if remaining_seconds == 0:
            return f"{minutes}m"
        return f"{minutes}m {remaining_seconds}s"
    else:
        hours = seconds // 3600
        remaining_minutes = (seconds % 3600) // 60
        if remaining_minutes == 0:
            return f"{hours}h"
        return f"{hours}h {remaining_minutes}m"

def get_player_display_name(player) -> str:
    """
    Get the display name for a player.

    Players with a chat handle are shown as @handle, otherwise by their
    display name, falling back to their id.
    """
    if getattr(player, 'username', None):
        return f"@{player.username}"
    return player.display_name or f"User{player.id}"

def sanitize_message(message: str) -> str:
    """
    Sanitize an admin broadcast message.

    Args:
        message: Raw message content

    Returns:
        Sanitized message content
    """
    # Remove excessive whitespace
    message = re.sub(r'\s+', ' ', message.strip())

    # Remove potential HTML/script content
    message = re.sub(r'<[^>]*>', '', message)

    if len(message) > MAX_BROADCAST_LENGTH:
        message = message[:MAX_BROADCAST_LENGTH] + "..."

    return message

def validate_group_link(link: str) -> tuple[bool, Optional[str]]:
    """
    Validate a custom group invite link.

    Returns:
        tuple: (is_valid, error_message)
    """
    if not link:
        return False, "Group link cannot be empty"

    if not link.startswith(GROUP_LINK_PREFIXES):
        return False, "Invalid link format. Must start with https://"

    if re.search(r'\s', link):
        return False, "Group link cannot contain spaces"

    return True, None
