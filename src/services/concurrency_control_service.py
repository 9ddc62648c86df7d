"""
Concurrency Control Service for StatClash

Per-room mutual exclusion and short-window request de-duplication. Every
mutation of a Room, including the card fetch of a round advancement, runs
inside room_operation() for that room; different rooms never block each other.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from src.config.game_settings import get_game_settings

logger = logging.getLogger(__name__)


class ConcurrencyControlService:
    """Hands out one re-entrant lock per room code and filters repeated requests."""

    def __init__(self, room_exists: Optional[Callable[[str], bool]] = None):
        self._room_locks: Dict[str, threading.RLock] = {}
        # Guards _room_locks itself
        self._locks_lock = threading.Lock()
        # Without a registry every code keeps its lock until cleanup
        self._room_exists = room_exists
        self._recent_requests: Dict[str, float] = {}
        self._requests_lock = threading.Lock()
        self.game_settings = get_game_settings()
        self._request_window = self.game_settings.request_dedup_window

    def track_rooms(self, room_exists: Callable[[str], bool]) -> None:
        """Only keep locks for codes the given registry knows about."""
        self._room_exists = room_exists

    def get_room_lock(self, room_code: str) -> threading.RLock:
        """
        Get or create the lock for a room.

        A code the registry does not know gets a fresh lock that is not
        stored; the caller will find no room under it anyway.
        """
        with self._locks_lock:
            lock = self._room_locks.get(room_code)
            if lock is not None:
                return lock
            lock = threading.RLock()
            if self._room_exists is None or self._room_exists(room_code):
                self._room_locks[room_code] = lock
            return lock

    def cleanup_room_lock(self, room_code: str) -> None:
        """Forget the lock of a deleted room."""
        with self._locks_lock:
            if self._room_locks.pop(room_code, None) is not None:
                logger.debug(f"Released lock for room {room_code}")

    @property
    def lock_count(self) -> int:
        return len(self._room_locks)

    @contextmanager
    def room_operation(self, room_code: str) -> Iterator[None]:
        """Run the enclosed block with exclusive access to the room."""
        with self.get_room_lock(room_code):
            yield

    def check_duplicate_request(self, request_key: str) -> bool:
        """
        Record a request key and report whether it was already seen.

        Returns:
            True if the same key arrived within the de-duplication window
        """
        now = time.time()
        with self._requests_lock:
            expired = [key for key, seen_at in self._recent_requests.items()
                       if now - seen_at > self._request_window]
            for key in expired:
                del self._recent_requests[key]

            if request_key in self._recent_requests:
                logger.warning(f"Dropping duplicate request {request_key}")
                return True

            self._recent_requests[request_key] = now
            return False
