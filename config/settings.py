import os
from dotenv import load_dotenv

# Render Configuration
IS_RENDER = os.environ.get("RENDER", "") == "true"

# Only load the .env file if we're not on Render (i.e., we are in a local environment)
if not IS_RENDER:
    load_dotenv()

# Flask Configuration
SECRET_KEY = os.getenv('SECRET_KEY', 'a_very_secret_key_that_should_be_changed')
CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

# Shared secret for /promote and the control-plane API
ADMIN_SECRET = os.getenv('ADMIN_SECRET', 'your_secret_key')

# Session storage: 'database' (SQLAlchemy) or 'redis'
SESSION_BACKEND = os.getenv('SESSION_BACKEND', 'database').lower()
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///game_sessions.db')
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379')

# Topic provider (OpenAI or any OpenAI-compatible endpoint, e.g. Ollama at http://localhost:11434/v1)
TOPIC_PROVIDER_ENABLED = os.getenv('TOPIC_PROVIDER_ENABLED', 'false').lower() == 'true'
TOPIC_PROVIDER_URL = os.getenv('TOPIC_PROVIDER_URL') or None
TOPIC_MODEL = os.getenv('TOPIC_MODEL', 'gpt-4o-mini')
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
TOPIC_TIMEOUT_SECONDS = float(os.getenv('TOPIC_TIMEOUT_SECONDS', 10))

# Server Configuration
PORT = int(os.getenv('PORT', 5000))
DEBUG = not IS_RENDER
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'eventlet')

