"""
Data models for game sessions.

These represent the per-room session state, its players and voting rounds,
plus the result values returned by game operations.
"""

import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple
from datetime import datetime, timezone
from enum import Enum

from utils.constants import DEFAULT_SETTINGS
from utils.helpers import calculate_imposter_count, get_player_display_name

def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)

def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

def _parse_bool(value: Any) -> bool:
    """Stored flags may be strings ('true'/'false') in hand-edited documents."""
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return bool(value)

class GameState(Enum):
    """Session state enumeration."""
    LOBBY = "lobby"
    PREPARED = "prepared"
    ACTIVE = "active"
    VOTING = "voting"
    ENDED = "ended"

class ErrorKind(Enum):
    """Failure kinds carried by OperationResult."""
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_PLAYERS = "insufficient_players"
    ALREADY_DISTRIBUTED = "already_distributed"
    GAME_IN_PROGRESS = "game_in_progress"
    NO_ACTIVE_GAME = "no_active_game"
    NO_ACTIVE_VOTING = "no_active_voting"
    VOTING_IN_PROGRESS = "voting_in_progress"
    INELIGIBLE = "ineligible"
    INVALID_TARGET = "invalid_target"
    NOT_FOUND = "not_found"
    INVALID_SETTING = "invalid_setting"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PERSISTENCE_FAILURE = "persistence_failure"

@dataclass
class OperationResult:
    """Outcome of a game operation."""
    success: bool
    message: str
    error: Optional[ErrorKind] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **data) -> 'OperationResult':
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: ErrorKind, message: str, **data) -> 'OperationResult':
        return cls(success=False, message=message, error=error, data=data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'success': self.success,
            'message': self.message,
            'error': self.error.value if self.error else None,
            'data': self.data
        }

@dataclass
class Player:
    """Represents a player in a room's roster."""
    id: str
    display_name: str
    joined_at: datetime = field(default_factory=utc_now)
    username: Optional[str] = None
    eliminated: bool = False

    @property
    def name(self) -> str:
        return get_player_display_name(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'display_name': self.display_name,
            'username': self.username,
            'joined_at': _format_datetime(self.joined_at),
            'eliminated': self.eliminated
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        return cls(
            id=str(data['id']),
            display_name=data.get('display_name') or '',
            username=data.get('username'),
            joined_at=_parse_datetime(data.get('joined_at')) or utc_now(),
            eliminated=bool(data.get('eliminated', False))
        )

@dataclass
class SessionSettings:
    """Per-room game settings, preserved across resets."""
    min_players: int = DEFAULT_SETTINGS['min_players']
    vote_time_seconds: int = DEFAULT_SETTINGS['vote_time_seconds']
    online_mode: bool = DEFAULT_SETTINGS['online_mode']

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min_players': self.min_players,
            'vote_time_seconds': self.vote_time_seconds,
            'online_mode': self.online_mode
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'SessionSettings':
        """Build settings, defaulting any missing or empty field."""
        data = data or {}
        online_mode = data.get('online_mode')
        return cls(
            min_players=int(data.get('min_players') or DEFAULT_SETTINGS['min_players']),
            vote_time_seconds=int(data.get('vote_time_seconds') or DEFAULT_SETTINGS['vote_time_seconds']),
            online_mode=DEFAULT_SETTINGS['online_mode'] if online_mode is None else _parse_bool(online_mode)
        )

@dataclass
class VotingRound:
    """A timed voting window; votes map voter id to target id."""
    round_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    active: bool = True
    votes: Dict[str, str] = field(default_factory=dict)
    started_at: datetime = field(default_factory=utc_now)
    deadline: Optional[datetime] = None

    def vote_counts(self) -> Dict[str, int]:
        """Get vote counts by target id."""
        return dict(Counter(self.votes.values()))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.deadline is not None and (now or utc_now()) >= self.deadline

    def time_remaining(self, now: Optional[datetime] = None) -> Optional[int]:
        if not self.deadline:
            return None
        remaining = self.deadline - (now or utc_now())
        return max(0, int(remaining.total_seconds()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary; votes are an explicit list of pairs."""
        return {
            'round_id': self.round_id,
            'active': self.active,
            'votes': [{'voter': voter, 'target': target} for voter, target in self.votes.items()],
            'started_at': _format_datetime(self.started_at),
            'deadline': _format_datetime(self.deadline)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VotingRound':
        votes = {}
        for entry in data.get('votes') or []:
            votes[str(entry['voter'])] = str(entry['target'])
        return cls(
            round_id=data.get('round_id') or uuid.uuid4().hex,
            active=bool(data.get('active', False)),
            votes=votes,
            started_at=_parse_datetime(data.get('started_at')) or utc_now(),
            deadline=_parse_datetime(data.get('deadline'))
        )

@dataclass
class Session:
    """
    Game session owned by one room.

    Players keep join order, which is shown to users and used
    to break voting ties.
    """
    room_id: str
    owner_admin_id: Optional[str] = None
    promoted_admins: List[str] = field(default_factory=list)
    players: List[Player] = field(default_factory=list)
    imposters: List[str] = field(default_factory=list)
    topic: str = ""
    started: bool = False
    roles_distributed: bool = False
    voting_round: Optional[VotingRound] = None
    custom_group_link: Optional[str] = None
    tracked_message_ids: List[str] = field(default_factory=list)
    settings: SessionSettings = field(default_factory=SessionSettings)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def state(self) -> GameState:
        """Current lifecycle state derived from the session flags."""
        if self.roles_distributed:
            if self.is_voting_active:
                return GameState.VOTING
            return GameState.ACTIVE
        if self.started:
            return GameState.PREPARED
        return GameState.LOBBY

    @property
    def is_voting_active(self) -> bool:
        return self.voting_round is not None and self.voting_round.active

    @property
    def active_players(self) -> List[Player]:
        """Players who have not been eliminated, in join order."""
        return [p for p in self.players if not p.eliminated]

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def find_player_by_username(self, username: str) -> Optional[Player]:
        """Case-insensitive lookup by chat handle."""
        username = username.lstrip('@').lower()
        for player in self.players:
            if player.username and player.username.lower() == username:
                return player
        return None

    def has_player(self, player_id: str) -> bool:
        return self.get_player(player_id) is not None

    def is_imposter(self, player_id: str) -> bool:
        return player_id in self.imposters

    def add_player(self, player: Player):
        self.players.append(player)

    def remove_player(self, player_id: str) -> Optional[Player]:
        player = self.get_player(player_id)
        if player:
            self.players.remove(player)
        return player

    def remaining_counts(self) -> Tuple[int, int]:
        """Count non-eliminated (imposters, innocents)."""
        remaining = self.active_players
        imposters = sum(1 for p in remaining if self.is_imposter(p.id))
        return imposters, len(remaining) - imposters

    def imposter_names(self) -> List[str]:
        names = []
        for imposter_id in self.imposters:
            player = self.get_player(imposter_id)
            names.append(player.name if player else f"User{imposter_id}")
        return names

    def clear_game(self):
        """End the current game but keep the roster and settings."""
        self.started = False
        self.roles_distributed = False
        self.imposters = []
        self.topic = ""
        self.voting_round = None
        for player in self.players:
            player.eliminated = False

    def to_status(self) -> Dict[str, Any]:
        """Read-only projection used by the control plane."""
        if self.roles_distributed:
            imposter_count = len(self.imposters)
        else:
            imposter_count = calculate_imposter_count(len(self.players)) if self.players else 0
        return {
            'room_id': self.room_id,
            'state': self.state.value,
            'players': [p.name for p in self.players],
            'total_players': len(self.players),
            'imposters': imposter_count,
            'started': self.started,
            'roles_distributed': self.roles_distributed,
            'topic': self.topic,
            'voting_active': self.is_voting_active,
            'settings': self.settings.to_dict(),
            'created_at': _format_datetime(self.created_at),
            'updated_at': _format_datetime(self.updated_at)
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON persistence."""
        return {
            'room_id': self.room_id,
            'owner_admin_id': self.owner_admin_id,
            'promoted_admins': list(self.promoted_admins),
            'players': [p.to_dict() for p in self.players],
            'imposters': list(self.imposters),
            'topic': self.topic,
            'started': self.started,
            'roles_distributed': self.roles_distributed,
            'voting_round': self.voting_round.to_dict() if self.voting_round else None,
            'custom_group_link': self.custom_group_link,
            'tracked_message_ids': list(self.tracked_message_ids),
            'settings': self.settings.to_dict(),
            'created_at': _format_datetime(self.created_at),
            'updated_at': _format_datetime(self.updated_at)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Session':
        voting_round = data.get('voting_round')
        owner = data.get('owner_admin_id')
        return cls(
            room_id=str(data['room_id']),
            owner_admin_id=str(owner) if owner is not None else None,
            promoted_admins=[str(a) for a in data.get('promoted_admins') or []],
            players=[Player.from_dict(p) for p in data.get('players') or []],
            imposters=[str(i) for i in data.get('imposters') or []],
            topic=data.get('topic') or "",
            started=bool(data.get('started', False)),
            roles_distributed=bool(data.get('roles_distributed', False)),
            voting_round=VotingRound.from_dict(voting_round) if voting_round else None,
            custom_group_link=data.get('custom_group_link'),
            tracked_message_ids=[str(m) for m in data.get('tracked_message_ids') or []],
            settings=SessionSettings.from_dict(data.get('settings')),
            created_at=_parse_datetime(data.get('created_at')) or utc_now(),
            updated_at=_parse_datetime(data.get('updated_at')) or utc_now()
        )

@dataclass
class VoteResults:
    """Results of a tallied voting round."""
    round_id: str
    vote_counts: Dict[str, int] = field(default_factory=dict)  # target -> count
    eliminated_id: Optional[str] = None
    eliminated_name: Optional[str] = None
    max_votes: int = 0
    tied_players: List[str] = field(default_factory=list)
    is_tie: bool = False
    total_votes: int = 0
    was_imposter: Optional[bool] = None
    winner: Optional[str] = None  # 'innocents', 'imposters'
    remaining_imposters: int = 0
    remaining_innocents: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'round_id': self.round_id,
            'vote_counts': self.vote_counts,
            'eliminated_id': self.eliminated_id,
            'eliminated_name': self.eliminated_name,
            'max_votes': self.max_votes,
            'tied_players': self.tied_players,
            'is_tie': self.is_tie,
            'total_votes': self.total_votes,
            'was_imposter': self.was_imposter,
            'winner': self.winner,
            'remaining_imposters': self.remaining_imposters,
            'remaining_innocents': self.remaining_innocents
        }

@dataclass
class GameResult:
    """Represents the final reveal of a finished game."""
    topic: str
    imposters: List[str]
    imposter_names: List[str]
    total_players: int
    winner: Optional[str] = None  # None when an admin ended the game
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'state': GameState.ENDED.value,
            'topic': self.topic,
            'imposters': self.imposters,
            'imposter_names': self.imposter_names,
            'total_players': self.total_players,
            'winner': self.winner,
            'reason': self.reason
        }
