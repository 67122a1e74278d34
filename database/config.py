"""
Database Configuration for the Imposter game.

Contains database engine setup, session management, and initialization functions.
"""

import os
import logging
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from .models import Base

# Configure logging
logger = logging.getLogger(__name__)

def normalize_database_url(database_url: str) -> str:
    """Handle Render's PostgreSQL URL format."""
    if database_url.startswith('postgres://'):
        return database_url.replace('postgres://', 'postgresql://', 1)
    return database_url

def create_db_engine(database_url: str) -> Engine:
    """
    Create the database engine for a URL.

    SQLite files use NullPool to avoid concurrency conflicts with eventlet;
    in-memory SQLite shares one connection so the data survives.
    """
    database_url = normalize_database_url(database_url)
    echo = os.getenv('SQL_DEBUG', 'false').lower() == 'true'

    if database_url in ('sqlite://', 'sqlite:///:memory:'):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool
        )

    if database_url.startswith('sqlite'):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=NullPool
        )

    # PostgreSQL configuration
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=20,
        max_overflow=30,
        pool_timeout=30,
        pool_recycle=3600,  # Recycle connections after 1 hour
    )

def create_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)

@contextmanager
def get_db_session(session_factory: sessionmaker):
    """Context manager for database sessions with automatic cleanup."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        session.close()

def init_database(engine: Engine):
    """Initialize the database and create tables."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
