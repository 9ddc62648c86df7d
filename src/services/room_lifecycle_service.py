"""
Room Lifecycle Service for StatClash

The room registry: generates room codes, creates and deletes rooms and tells
interested services when a room goes away.
"""

import logging
import random
import string
import threading
from typing import Callable, Dict, List, Optional

from src.config.game_settings import get_game_settings
from src.core.models import RoomSettings
from src.core.room import Room

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


class RoomLifecycleService:
    """Manages room creation, deletion, and lifecycle operations."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rooms: Dict[str, Room] = {}
        self._rooms_lock = threading.RLock()
        self._deletion_listeners: List[Callable[[str], None]] = []
        self._rng = rng or random.SystemRandom()
        self.game_settings = get_game_settings()

    def generate_room_code(self) -> str:
        length = self.game_settings.room_code_length
        return ''.join(self._rng.choice(ROOM_CODE_ALPHABET) for _ in range(length))

    def create_room(self, settings: Optional[RoomSettings] = None) -> Room:
        """
        Create a room under a fresh code.

        Args:
            settings: Initial settings (defaults from configuration when omitted)

        Returns:
            The new, empty Room
        """
        if settings is None:
            settings = RoomSettings(
                rounds_to_win=self.game_settings.default_rounds_to_win,
                max_winners=self.game_settings.default_max_winners
            )

        with self._rooms_lock:
            code = self.generate_room_code()
            while code in self._rooms:
                logger.warning(f"Room code collision on {code}, regenerating")
                code = self.generate_room_code()

            room = Room(code, settings)
            self._rooms[code] = room
            logger.info(f"Created room {code}")
            return room

    def delete_room(self, room_code: str) -> bool:
        """
        Delete a room and notify deletion listeners.

        Returns:
            True if room was deleted, False if room didn't exist
        """
        with self._rooms_lock:
            if self._rooms.pop(room_code, None) is None:
                return False
            logger.info(f"Deleted room {room_code}")

        for listener in list(self._deletion_listeners):
            listener(room_code)
        return True

    def add_deletion_listener(self, listener: Callable[[str], None]) -> None:
        """Register a callback invoked with the code of every deleted room."""
        self._deletion_listeners.append(listener)

    def room_exists(self, room_code: str) -> bool:
        return room_code in self._rooms

    def get_room(self, room_code: str) -> Optional[Room]:
        return self._rooms.get(room_code)

    def get_all_room_codes(self) -> List[str]:
        return list(self._rooms.keys())

    def get_all_rooms(self) -> List[Room]:
        with self._rooms_lock:
            return list(self._rooms.values())
