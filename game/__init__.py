"""
Game Module for the Imposter game.

Contains the session state machine, role assignment, voting and the
in-memory session registry. Talks to storage, chat and topic
generation only through the contracts in collaborators.py.
"""

from .models import (
    GameState, ErrorKind, OperationResult, Player, SessionSettings,
    VotingRound, Session, VoteResults, GameResult
)
from .collaborators import (
    SessionStore, TopicProvider, ChatTransport, MembershipRole,
    PersistenceError, TransportError
)
from .roles import RoleAssignmentEngine, RoleAssignment
from .vote_manager import VotingCoordinator, thread_scheduler
from .registry import SessionRegistry
from .manager import GameSessionController, DeliveryReport

__all__ = [
    # Data models
    'GameState',
    'ErrorKind',
    'OperationResult',
    'Player',
    'SessionSettings',
    'VotingRound',
    'Session',
    'VoteResults',
    'GameResult',
    'RoleAssignment',
    'DeliveryReport',

    # Collaborator contracts
    'SessionStore',
    'TopicProvider',
    'ChatTransport',
    'MembershipRole',
    'PersistenceError',
    'TransportError',

    # Components
    'RoleAssignmentEngine',
    'VotingCoordinator',
    'thread_scheduler',
    'SessionRegistry',
    'GameSessionController'
]
