"""
Global pytest configuration and fixtures.
Provides service fixtures for proper dependency injection in tests.
"""

import pytest
import os
from flask_socketio import SocketIO
from flask import Flask

# Ensure testing environment before the app module reads it
os.environ['TESTING'] = '1'
os.environ['FLASK_ENV'] = 'testing'
os.environ['CARD_SOURCE'] = 'yaml'
os.environ['CARDS_FILE'] = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'cards.yaml')


@pytest.fixture(scope="function", autouse=True)
def reset_global_container():
    """Rebuild the global container before each test so no room outlives its test."""
    from container import configure_container, get_container
    from config_factory import ConfigurationFactory
    from src.config.game_settings import get_game_settings
    from tests.helpers.card_helpers import StubCardProvider

    from app import socketio as app_socketio
    config_factory = ConfigurationFactory()
    config_factory.reset()
    app_config = config_factory.load_from_environment()
    get_game_settings(app_config)

    container = configure_container(socketio=app_socketio)
    container.set_external_dependency('CardProvider', StubCardProvider())

    yield

    get_container().get('AutoGameFlowService').stop()


@pytest.fixture(scope="session")
def app():
    """Create Flask app for testing."""
    from app import app as flask_app
    return flask_app


@pytest.fixture(scope="session")
def socketio():
    """Create SocketIO instance for testing."""
    from app import socketio as socketio_instance
    return socketio_instance


@pytest.fixture(scope="function")
def container():
    """Service container wired to a throwaway SocketIO server and a stub deck."""
    from container import configure_container
    from tests.helpers.card_helpers import StubCardProvider

    test_app = Flask(__name__)
    test_socketio = SocketIO(test_app, async_mode='eventlet')

    container = configure_container(socketio=test_socketio)
    container.set_external_dependency('CardProvider', StubCardProvider())
    return container


@pytest.fixture(scope="function")
def card_provider():
    """The stub card provider used by the global container."""
    from container import get_container
    return get_container().get('CardProvider')


@pytest.fixture(scope="function")
def room_manager():
    from container import get_container
    return get_container().get('RoomManager')


@pytest.fixture(scope="function")
def game_manager():
    from container import get_container
    return get_container().get('GameManager')


@pytest.fixture(scope="function")
def session_service():
    from container import get_container
    return get_container().get('SessionService')


@pytest.fixture(scope="function")
def auto_flow_service():
    from container import get_container
    return get_container().get('AutoGameFlowService')
