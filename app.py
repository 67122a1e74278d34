"""
Imposter - A Social Deduction Party Game Backend

Flask-SocketIO server that runs the imposter game for any number of
chat rooms. Everyone in a room gets the same secret topic except the
imposters, who must bluff until the group votes them out.

App.py is purely server setup and handler registration.
"""

import logging
from typing import Optional
from flask import Flask
from flask_socketio import SocketIO
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from config import settings
from game import (
    GameSessionController, SessionRegistry, RoleAssignmentEngine,
    VotingCoordinator, SessionStore, TopicProvider
)
from handlers import register_socket_handlers, register_api_handlers, SocketIOTransport
from ai import OpenAIClient, TopicGenerator

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def build_session_store(backend: str = None) -> SessionStore:
    """
    Create the configured session store.

    Raises:
        PersistenceError: if the store cannot be initialized
        ValueError: for an unknown backend name
    """
    backend = (backend or settings.SESSION_BACKEND).lower()
    if backend == 'redis':
        from cache import RedisClient, RedisSessionStore
        return RedisSessionStore(RedisClient(settings.REDIS_URL))
    if backend == 'database':
        from database import DatabaseSessionStore
        return DatabaseSessionStore(settings.DATABASE_URL)
    raise ValueError(f"Unknown SESSION_BACKEND: {backend}")

def build_topic_provider() -> Optional[TopicProvider]:
    """Create the topic generator when it is enabled in settings."""
    if not settings.TOPIC_PROVIDER_ENABLED:
        logger.info("Topic provider disabled, using built-in topics")
        return None

    client = OpenAIClient(
        api_key=settings.OPENAI_API_KEY,
        model=settings.TOPIC_MODEL,
        base_url=settings.TOPIC_PROVIDER_URL,
        timeout=settings.TOPIC_TIMEOUT_SECONDS,
        max_retries=1
    )
    return TopicGenerator(client)

def create_app(store: Optional[SessionStore] = None,
               topic_provider: Optional[TopicProvider] = None,
               async_mode: Optional[str] = None,
               admin_secret: Optional[str] = None):
    """
    Application factory that creates and configures the Flask app.

    Failing to initialize the session store is fatal: the error is
    logged and re-raised.

    Returns:
        Configured Flask app and its SocketIO instance
    """

    # Flask configuration
    app = Flask(__name__)
    app.config['SECRET_KEY'] = settings.SECRET_KEY

    # CORS configuration for the web client
    cors_origins = settings.CORS_ORIGINS.split(',')
    CORS(app, origins=cors_origins)

    # ProxyFix for deployment behind reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    # SocketIO configuration
    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=async_mode or settings.SOCKETIO_ASYNC_MODE,
        ping_timeout=60,
        ping_interval=25
    )

    # Session storage
    logger.info("Initializing session store...")
    if store is None:
        try:
            store = build_session_store()
        except Exception as e:
            logger.critical(f"Failed to initialize session store: {e}")
            raise

    registry = SessionRegistry(store)
    restored = registry.hydrate()
    logger.info(f"Restored {restored} sessions")

    # Game system
    def socketio_scheduler(delay, callback):
        def run():
            socketio.sleep(delay)
            callback()
        socketio.start_background_task(run)

    transport = SocketIOTransport(socketio)
    controller = GameSessionController(
        registry=registry,
        transport=transport,
        admin_secret=admin_secret or settings.ADMIN_SECRET,
        role_engine=RoleAssignmentEngine(topic_provider or build_topic_provider()),
        voting=VotingCoordinator(scheduler=socketio_scheduler)
    )
    app.extensions['game_controller'] = controller

    resumed = controller.resume_rounds()
    if resumed:
        logger.info(f"Resumed {resumed} voting rounds")

    # Register handlers (pure routing layer)
    logger.info("Registering handlers...")
    register_socket_handlers(socketio, controller, transport)
    register_api_handlers(app, controller, admin_secret or settings.ADMIN_SECRET)

    logger.info("Application initialization complete")
    return app, socketio

def main():
    """Main entry point for development server."""
    app, socketio = create_app()

    logger.info(f"Starting Imposter game server on port {settings.PORT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"CORS origins: {settings.CORS_ORIGINS}")

    socketio.run(app, debug=settings.DEBUG, port=settings.PORT, host='0.0.0.0')

if __name__ == '__main__':
    main()
