"""
Unit tests for EventQueueManager and the prevent_event_overflow decorator.
"""

import pytest
from unittest.mock import MagicMock, Mock, patch

from src.services import rate_limit_service
from src.services.rate_limit_service import EventQueueManager, prevent_event_overflow


def make_config(**overrides):
    values = dict(
        max_events_rate_tracking=100,
        max_global_events_tracking=1000,
        max_events_per_second=3,
        max_events_per_minute=5,
        rate_limit_window_seconds=60,
        is_testing=False
    )
    values.update(overrides)
    return Mock(**values)


class TestEventQueueManager:

    @pytest.fixture(autouse=True)
    def production_mode(self, monkeypatch):
        monkeypatch.delenv('TESTING', raising=False)

    def test_allows_events_under_limit(self):
        manager = EventQueueManager(make_config())

        assert all(manager.can_process_event('sid-1', 'select_stat') for _ in range(3))

    def test_blocks_burst_over_per_second_limit(self):
        manager = EventQueueManager(make_config())

        results = [manager.can_process_event('sid-1', 'select_stat') for _ in range(4)]

        assert results == [True, True, True, False]
        assert manager.is_client_blocked('sid-1')
        assert manager.can_process_event('sid-2', 'select_stat')

    def test_blocks_over_per_minute_limit(self):
        manager = EventQueueManager(make_config(max_events_per_second=100))

        results = [manager.can_process_event('sid-1', 'join_room') for _ in range(6)]

        assert results[-1] is False

    def test_block_expires(self):
        manager = EventQueueManager(make_config(rate_limit_window_seconds=0))
        manager.block_client('sid-1')

        with patch('src.services.rate_limit_service.time.time', return_value=manager.blocked_clients['sid-1'] + 1):
            assert not manager.is_client_blocked('sid-1')

    def test_forget_client(self):
        manager = EventQueueManager(make_config())
        manager.can_process_event('sid-1', 'join_room')

        manager.forget_client('sid-1')

        assert manager.get_queue_stats()['total_clients'] == 0

    def test_testing_config_bypasses_limits(self):
        manager = EventQueueManager(make_config(is_testing=True, max_events_per_second=1))

        assert all(manager.can_process_event('sid-1', 'select_stat') for _ in range(10))

    def test_global_window_size_from_config(self):
        manager = EventQueueManager(make_config(max_global_events_tracking=50))
        assert manager.global_event_window.maxlen == 50


class TestPreventEventOverflow:

    def setup_method(self):
        self.previous = rate_limit_service.get_event_queue_manager()

    def teardown_method(self):
        rate_limit_service.set_event_queue_manager(self.previous)

    def test_rejected_event_emits_rate_limited(self):
        manager = Mock(block_duration=60)
        manager.can_process_event.return_value = False
        rate_limit_service.set_event_queue_manager(manager)
        handler = Mock()

        wrapped = prevent_event_overflow('select_stat')(handler)
        with patch('src.services.rate_limit_service.request', MagicMock()) as mock_request, \
             patch('src.services.rate_limit_service.emit') as mock_emit:
            mock_request.sid = 'sid-1'
            wrapped({'stat': 'hp'})

        handler.assert_not_called()
        event, payload = mock_emit.call_args[0]
        assert event == 'error'
        assert payload['error']['code'] == 'RATE_LIMITED'

    def test_accepted_event_reaches_handler(self):
        manager = Mock()
        manager.can_process_event.return_value = True
        rate_limit_service.set_event_queue_manager(manager)
        handler = Mock(return_value='ok')

        wrapped = prevent_event_overflow('select_stat')(handler)
        with patch('src.services.rate_limit_service.request', MagicMock()) as mock_request:
            mock_request.sid = 'sid-1'
            assert wrapped({'stat': 'hp'}) == 'ok'

    def test_requires_initialized_manager(self):
        rate_limit_service.set_event_queue_manager(None)

        with pytest.raises(RuntimeError):
            prevent_event_overflow('x')(Mock())()
