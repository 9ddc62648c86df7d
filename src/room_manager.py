"""
Room Manager for StatClash

Coordinates the room registry, player management and per-room locking.
Acts as a facade over the decomposed services.
"""

import logging
from typing import Callable, Dict, List, Optional

from src.core.errors import RoomNotFound
from src.core.models import DepartureResult, JoinResult, RoomSettings
from src.core.room import Room
from src.services.concurrency_control_service import ConcurrencyControlService
from src.services.player_management_service import PlayerManagementService
from src.services.room_lifecycle_service import RoomLifecycleService

logger = logging.getLogger(__name__)


class RoomManager:
    """Manages game rooms and their lifecycle with thread-safe operations."""

    def __init__(self, is_live: Optional[Callable[[str], bool]] = None,
                 concurrency_control: Optional[ConcurrencyControlService] = None):
        self.concurrency_control = concurrency_control or ConcurrencyControlService()
        self.lifecycle = RoomLifecycleService()
        self.players = PlayerManagementService(self.lifecycle, self.concurrency_control, is_live)
        self.concurrency_control.track_rooms(self.lifecycle.room_exists)
        self.lifecycle.add_deletion_listener(self.concurrency_control.cleanup_room_lock)

    # Room Lifecycle Operations
    def create_room(self, creator_session_id: str, player_name: str,
                    settings: Optional[RoomSettings] = None) -> Room:
        """
        Create a room and seat its creator.

        Args:
            creator_session_id: Socket session of the creating player
            player_name: Display name of the creator
            settings: Requested settings, defaults when omitted

        Returns:
            The new Room
        """
        room = self.lifecycle.create_room(settings)
        self.players.add_creator(room, creator_session_id, player_name)
        return room

    def delete_room(self, room_code: str) -> bool:
        return self.lifecycle.delete_room(room_code)

    def room_exists(self, room_code: str) -> bool:
        return self.lifecycle.room_exists(room_code)

    def get_room(self, room_code: str) -> Optional[Room]:
        return self.lifecycle.get_room(room_code)

    def require_room(self, room_code: str) -> Room:
        """Get a room or raise RoomNotFound."""
        room = self.lifecycle.get_room(room_code)
        if room is None:
            raise RoomNotFound(room_code)
        return room

    def get_all_rooms(self) -> List[str]:
        return self.lifecycle.get_all_room_codes()

    def add_deletion_listener(self, listener: Callable[[str], None]) -> None:
        self.lifecycle.add_deletion_listener(listener)

    def room_operation(self, room_code: str):
        """Context manager giving exclusive access to one room."""
        return self.concurrency_control.room_operation(room_code)

    # Player Management Operations
    def join_room(self, room_code: str, session_id: str, player_name: str) -> JoinResult:
        """
        Join a room by name, reclaiming an abandoned seat when possible.

        Raises:
            RoomNotFound, NameConflict, RoomFull
        """
        return self.players.join_room(room_code, session_id, player_name)

    def check_name(self, room_code: str, player_name: str) -> bool:
        return self.players.is_name_available(room_code, player_name)

    def leave_room(self, room_code: str, session_id: str) -> Optional[DepartureResult]:
        return self.players.remove_player(room_code, session_id)

    def kick_player(self, room_code: str, requester_id: str, target_id: str) -> Optional[DepartureResult]:
        return self.players.kick_player(room_code, requester_id, target_id)

    def transfer_creator(self, room_code: str, requester_id: str, target_id: str) -> bool:
        return self.players.transfer_creator(room_code, requester_id, target_id)

    def update_settings(self, room_code: str, requester_id: str, settings: Dict[str, int]) -> Optional[RoomSettings]:
        return self.players.update_settings(room_code, requester_id, settings)

    def is_creator(self, room_code: str, session_id: str) -> bool:
        room = self.lifecycle.get_room(room_code)
        return room is not None and room.creator == session_id
