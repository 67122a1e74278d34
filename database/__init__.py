"""
Database Package for the Imposter game.

Provides clean imports for all database functionality.
"""

# Models
from .models import Base, StoredSession

# Configuration and session management
from .config import (
    create_db_engine,
    create_session_factory,
    get_db_session,
    init_database
)

# Session store
from .store import DatabaseSessionStore

__all__ = [
    # Models
    "Base",
    "StoredSession",

    # Configuration
    "create_db_engine",
    "create_session_factory",
    "get_db_session",
    "init_database",

    # Store
    "DatabaseSessionStore"
]
