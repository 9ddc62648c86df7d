"""
Player Management Service for StatClash

Handles joining (including reconnection by name), leaving, kicking, creator
transfer and lobby settings. Every method takes the room lock.
"""

import logging
from typing import Callable, Dict, Optional

from src.config.game_settings import get_game_settings
from src.core.errors import NameConflict, RoomFull, RoomNotFound
from src.core.models import DepartureResult, JoinResult, RoomSettings
from src.core.room import Room
from src.services import creator_service

logger = logging.getLogger(__name__)


class PlayerManagementService:
    """Manages player operations within rooms."""

    def __init__(self, room_lifecycle_service, concurrency_control_service,
                 is_live: Optional[Callable[[str], bool]] = None):
        self.room_lifecycle_service = room_lifecycle_service
        self.concurrency_control_service = concurrency_control_service
        # Without a liveness source every seated session counts as live
        self.is_live = is_live or (lambda session_id: True)
        self.game_settings = get_game_settings()

    def _require_room(self, room_code: str) -> Room:
        room = self.room_lifecycle_service.get_room(room_code)
        if room is None:
            raise RoomNotFound(room_code)
        return room

    def add_creator(self, room: Room, session_id: str, player_name: str) -> None:
        """Seat the first player of a freshly created room as its creator."""
        with self.concurrency_control_service.room_operation(room.code):
            room.add_player(session_id, player_name, is_creator=True)
            logger.info(f"Player {player_name} created room {room.code}")

    def join_room(self, room_code: str, session_id: str, player_name: str) -> JoinResult:
        """
        Seat a session in a room, or hand an abandoned seat to it.

        A name held by a session that is no longer live is taken over with
        its score, card and creator role. A name held by a live session is
        rejected.

        Raises:
            RoomNotFound: If the room does not exist
            NameConflict: If a live player already uses the name
            RoomFull: If the room has no free seat
        """
        with self.concurrency_control_service.room_operation(room_code):
            room = self._require_room(room_code)

            if room.has_player(session_id):
                return JoinResult(player=room.players[session_id])

            existing = room.find_player_by_name(player_name)
            if existing is not None:
                if self.is_live(existing.session_id):
                    raise NameConflict(player_name, room_code)

                old_session_id = existing.session_id
                player = room.replace_session(old_session_id, session_id)
                logger.info(
                    f"Player {player.name} reconnected to room {room_code} "
                    f"with preserved score {player.score}"
                )
                return JoinResult(player=player, reconnected=True, replaced_session_id=old_session_id)

            max_players = self.game_settings.max_players_per_room
            if room.player_count >= max_players:
                raise RoomFull(room_code, max_players)

            player = room.add_player(session_id, player_name)
            logger.info(f"New player {player_name} joined room {room_code}")
            return JoinResult(player=player)

    def is_name_available(self, room_code: str, player_name: str) -> bool:
        """Whether joining the room under this name would succeed."""
        with self.concurrency_control_service.room_operation(room_code):
            room = self._require_room(room_code)
            existing = room.find_player_by_name(player_name)
            if existing is not None:
                return not self.is_live(existing.session_id)
            return not room.is_name_reserved(player_name)

    def _finish_departure(self, room: Room, result: DepartureResult) -> DepartureResult:
        if room.is_empty:
            self.room_lifecycle_service.delete_room(room.code)
            result.room_deleted = True
        return result

    def remove_player(self, room_code: str, session_id: str) -> Optional[DepartureResult]:
        """
        Remove a player as a voluntary leave. Deletes the room once empty.

        Returns:
            DepartureResult, or None if the room or the player was not there
        """
        with self.concurrency_control_service.room_operation(room_code):
            room = self.room_lifecycle_service.get_room(room_code)
            if room is None:
                return None

            player = room.remove_player(session_id)
            if player is None:
                return None

            logger.info(f"Player {player.name} left room {room_code}")
            result = DepartureResult(player=player, new_creator=creator_service.assign_new_creator(room))
            return self._finish_departure(room, result)

    def kick_player(self, room_code: str, requester_id: str, target_id: str) -> Optional[DepartureResult]:
        """Remove target_id when requester_id is the creator. None when not allowed."""
        with self.concurrency_control_service.room_operation(room_code):
            room = self._require_room(room_code)
            player = creator_service.kick(room, requester_id, target_id)
            if player is None:
                logger.info(f"Ignored kick of {target_id} by non-creator {requester_id} in room {room_code}")
                return None
            return self._finish_departure(room, DepartureResult(player=player))

    def transfer_creator(self, room_code: str, requester_id: str, target_id: str) -> bool:
        with self.concurrency_control_service.room_operation(room_code):
            room = self._require_room(room_code)
            moved = creator_service.transfer_creator(room, requester_id, target_id)
            if not moved:
                logger.info(f"Ignored creator transfer by {requester_id} in room {room_code}")
            return moved

    def update_settings(self, room_code: str, requester_id: str, settings: Dict[str, int]) -> Optional[RoomSettings]:
        """
        Merge lobby settings on the creator's behalf.

        Returns:
            The effective settings, or None if requester_id is not the creator
        """
        with self.concurrency_control_service.room_operation(room_code):
            room = self._require_room(room_code)
            if room.creator != requester_id:
                logger.info(f"Ignored settings update by non-creator {requester_id} in room {room_code}")
                return None
            updated = room.update_settings(
                rounds_to_win=settings.get('rounds_to_win'),
                max_winners=settings.get('max_winners')
            )
            logger.info(f"Room {room_code} settings now {updated.to_dict()}")
            return updated
