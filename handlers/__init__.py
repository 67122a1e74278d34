"""
Handlers Module for the Imposter game.

Contains all web layer handlers (Socket.IO and API) with no business logic,
plus the Socket.IO chat transport the controller sends messages through.
"""

from .socket_handlers import register_socket_handlers
from .api_handlers import register_api_handlers
from .transport import SocketIOTransport

__all__ = [
    'register_socket_handlers',
    'register_api_handlers',
    'SocketIOTransport'
]
