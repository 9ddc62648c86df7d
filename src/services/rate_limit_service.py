"""
Rate limiting for Socket.IO events.

Each client gets a per-second and per-minute budget; a client exceeding
either is blocked for a while. Limits come from the application config.
"""

import logging
import os
import threading
import time
from collections import defaultdict, deque
from functools import wraps
from typing import Optional

from flask import request
from flask_socketio import emit

from src.core.errors import ErrorCode

logger = logging.getLogger(__name__)


class EventQueueManager:
    """Tracks per-client event rates and blocks clients that flood the server."""

    def __init__(self, config=None):
        tracking = getattr(config, 'max_events_rate_tracking', 100)
        self.client_rates = defaultdict(lambda: deque(maxlen=tracking))
        self.global_event_window = deque(maxlen=getattr(config, 'max_global_events_tracking', 1000))
        self.global_event_count = 0
        self.blocked_clients = {}
        self.lock = threading.RLock()

        self.max_events_per_second = getattr(config, 'max_events_per_second', 10)
        self.max_events_per_minute = getattr(config, 'max_events_per_minute', 100)
        self.block_duration = getattr(config, 'rate_limit_window_seconds', 60)
        self.global_max_events_per_second = 100
        self._testing = bool(config is not None and config.is_testing)

    def _is_testing(self) -> bool:
        return self._testing or os.environ.get('TESTING') == '1'

    def is_client_blocked(self, client_id: str) -> bool:
        with self.lock:
            blocked_at = self.blocked_clients.get(client_id)
            if blocked_at is None:
                return False
            if time.time() - blocked_at > self.block_duration:
                del self.blocked_clients[client_id]
                logger.info(f"Unblocked client {client_id}")
                return False
            return True

    def block_client(self, client_id: str, reason: str = "Rate limit exceeded"):
        with self.lock:
            self.blocked_clients[client_id] = time.time()
            logger.warning(f"Blocked client {client_id}: {reason}")

    def forget_client(self, client_id: str) -> None:
        """Drop rate history of a disconnected client."""
        with self.lock:
            self.client_rates.pop(client_id, None)

    def can_process_event(self, client_id: str, event_type: str) -> bool:
        """Check if an event can be processed within the rate limits."""
        if self._is_testing():
            return True

        with self.lock:
            current_time = time.time()

            if self.is_client_blocked(client_id):
                return False

            self.global_event_window.append(current_time)
            recent_global_events = sum(1 for t in self.global_event_window if current_time - t <= 1)
            if recent_global_events > self.global_max_events_per_second:
                logger.warning(f"Global rate limit exceeded: {recent_global_events} events/sec")
                return False

            client_events = self.client_rates[client_id]
            client_events.append(current_time)

            recent_events = sum(1 for t in client_events if current_time - t <= 1)
            if recent_events > self.max_events_per_second:
                self.block_client(client_id, f"Too many {event_type} events per second: {recent_events}")
                return False

            minute_events = sum(1 for t in client_events if current_time - t <= 60)
            if minute_events > self.max_events_per_minute:
                self.block_client(client_id, f"Too many events per minute: {minute_events}")
                return False

            self.global_event_count += 1
            return True

    def get_queue_stats(self, client_id: Optional[str] = None) -> dict:
        with self.lock:
            if client_id:
                return {
                    'recent_events': len(self.client_rates[client_id]),
                    'blocked': self.is_client_blocked(client_id)
                }
            return {
                'total_clients': len(self.client_rates),
                'blocked_clients': len(self.blocked_clients),
                'global_event_count': self.global_event_count
            }


# Set by app.py
_event_queue_manager = None


def set_event_queue_manager(manager):
    """Set the global event queue manager instance."""
    global _event_queue_manager
    _event_queue_manager = manager


def get_event_queue_manager():
    return _event_queue_manager


def prevent_event_overflow(event_type: str = "generic"):
    """Decorator rejecting events from clients over their rate budget."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if _event_queue_manager is None:
                raise RuntimeError("Event queue manager not initialized. Call set_event_queue_manager() first.")

            client_id = request.sid
            if not _event_queue_manager.can_process_event(client_id, event_type):
                logger.warning(f"Event {event_type} blocked for client {client_id}")
                emit('error', {
                    'success': False,
                    'error': {
                        'code': ErrorCode.RATE_LIMITED.value,
                        'message': 'Too many requests. Please slow down.',
                        'details': {'retry_after': _event_queue_manager.block_duration}
                    }
                })
                return None

            return func(*args, **kwargs)

        return wrapper
    return decorator
