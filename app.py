"""
StatClash - A multiplayer card game where players compare Pokémon stats.
Main Flask application entry point focusing on app creation, dependency injection, and service wiring.
"""

from flask import Flask
from flask_socketio import SocketIO
import os
import logging
import atexit
import sys
import yaml

from container import configure_container
from config_factory import load_config, ConfigurationFactory
from src.card_provider import ContentValidationError
from src.config.game_settings import get_game_settings
from src.services.rate_limit_service import EventQueueManager, set_event_queue_manager

# Initialize Flask app
app = Flask(__name__)

# Load and apply configuration
app_config = load_config()
config_factory = ConfigurationFactory()
app.config.update(config_factory.get_flask_config())
get_game_settings(app_config)

# Initialize Socket.IO with environment-aware CORS
# In production, restrict to explicitly allowed origins from env var SOCKETIO_CORS_ALLOWED_ORIGINS (comma-separated)
allowed_origins_env = os.environ.get('SOCKETIO_CORS_ALLOWED_ORIGINS', '')
if app_config.is_production:
    _cors_allowed = [o.strip() for o in allowed_origins_env.split(',') if o.strip()]
    socketio = SocketIO(app, cors_allowed_origins=_cors_allowed or [], async_mode='eventlet')
else:
    socketio = SocketIO(app, cors_allowed_origins="*", async_mode='eventlet')

# Configure logging
logging.basicConfig(level=app_config.log_level.upper())
logger = logging.getLogger(__name__)

# Configure service container with dependencies
container = configure_container(socketio=socketio)

# Fail fast when the card source cannot be set up
try:
    container.get('CardProvider')
except (FileNotFoundError, yaml.YAMLError, ContentValidationError) as e:
    logger.critical(f"FATAL: Card file validation failed, which is critical for game play. Server shutting down. Error: {e}")
    sys.exit(1)

# Build every service now so wiring errors surface at startup
for service_name in container.get_service_names():
    container.get(service_name)

# Initialize rate limiting
event_queue_manager = EventQueueManager(app_config)
set_event_queue_manager(event_queue_manager)

# Register REST endpoints
from src.routes.api import create_api_blueprint
api_blueprint = create_api_blueprint()
app.register_blueprint(api_blueprint)

# Register Socket.IO handlers
from src.handlers.socket_handlers import register_socket_handlers
register_socket_handlers(socketio)


def cleanup_on_exit():
    """Clean up resources on application exit."""
    logger.info("Shutting down StatClash server...")
    container.get('AutoGameFlowService').stop()
    container.get('CardProvider').close()


atexit.register(cleanup_on_exit)

if __name__ == '__main__':
    logger.info(f"Starting StatClash server on {app_config.host}:{app_config.port}")
    try:
        socketio.run(app, host=app_config.host, port=app_config.port, debug=app_config.debug)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
