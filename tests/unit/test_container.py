"""
Unit tests for the service container and the application wiring.
"""

import pytest

from container import CircularDependencyError, ServiceContainer, ServiceLifecycle, ServiceNotFoundError


class Widget:
    def __init__(self, *deps):
        self.deps = deps


class TestServiceContainer:

    def setup_method(self):
        self.container = ServiceContainer()

    def test_singletons_are_shared(self):
        self.container.register('Widget', Widget)
        assert self.container.get('Widget') is self.container.get('Widget')

    def test_transient_services_are_fresh(self):
        self.container.register('Widget', Widget, lifecycle=ServiceLifecycle.TRANSIENT)
        assert self.container.get('Widget') is not self.container.get('Widget')

    def test_dependencies_are_injected_in_order(self):
        self.container.set_external_dependency('socketio', 'sio')
        self.container.register('A', Widget)
        self.container.register('B', Widget, dependencies=['socketio', 'A'])

        widget = self.container.get('B')

        assert widget.deps == ('sio', self.container.get('A'))

    def test_function_factories_receive_config(self):
        self.container.register('Value', lambda scale: 2 * scale, config={'scale': 21})
        assert self.container.get('Value') == 42

    def test_duplicate_registration(self):
        self.container.register('Widget', Widget)
        with pytest.raises(ValueError):
            self.container.register('Widget', Widget)

    def test_unknown_service(self):
        with pytest.raises(ServiceNotFoundError):
            self.container.get('Nope')

    def test_circular_dependency(self):
        self.container.register('A', Widget, dependencies=['B'])
        self.container.register('B', Widget, dependencies=['A'])
        with pytest.raises(CircularDependencyError):
            self.container.get('A')

    def test_validate_dependencies(self):
        self.container.register('A', Widget, dependencies=['Missing'])
        assert self.container.validate_dependencies() == {'A': ['Missing']}


class TestApplicationWiring:

    def test_all_services_resolve(self, container):
        assert container.validate_dependencies() == {}
        for name in container.get_service_names():
            assert container.get(name) is not None

    def test_room_manager_uses_session_liveness(self, container):
        room_manager = container.get('RoomManager')
        session_service = container.get('SessionService')

        assert room_manager.players.is_live == session_service.is_live
        assert room_manager.concurrency_control is container.get('ConcurrencyControlService')

    def test_game_manager_uses_card_provider(self, container):
        assert container.get('GameManager').card_provider is container.get('CardProvider')

    def test_room_deletion_cancels_pending_rounds(self, container):
        room_manager = container.get('RoomManager')
        auto_flow = container.get('AutoGameFlowService')
        room = room_manager.create_room('s1', 'Ash')
        auto_flow.schedule_next_round(room.code, delay=30)

        room_manager.leave_room(room.code, 's1')

        assert not auto_flow.has_pending_round(room.code)
