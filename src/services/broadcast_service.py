"""
Broadcast Service - Centralized Socket.IO message broadcasting.

This service handles all Socket.IO emissions in a centralized way:
- Room-wide broadcasts
- Individual player messages
- Round and roster notifications
"""

import logging
from typing import Any, Dict, List, Optional

from src.core.models import RoomSettings, RoundResult, RoundState
from src.services.room_state_presenter import RoomStatePresenter

logger = logging.getLogger(__name__)


class BroadcastService:
    """Centralized service for all Socket.IO broadcasting operations."""

    def __init__(self, socketio, room_manager, presenter: Optional[RoomStatePresenter] = None):
        """Initialize the broadcast service.

        Args:
            socketio: Flask-SocketIO instance for emitting messages
            room_manager: Room management service
            presenter: Payload builder, a fresh one when omitted
        """
        self.socketio = socketio
        self.room_manager = room_manager
        self.room_state_presenter = presenter or RoomStatePresenter()

    # Core emission methods

    def emit_to_room(self, event: str, data: Dict[str, Any], room_code: str):
        """Emit an event to all players in a room."""
        try:
            self.socketio.emit(event, data, room=room_code)
            logger.debug(f'Emitted {event} to room {room_code}')
        except Exception as e:
            logger.error(f'Error emitting {event} to room {room_code}: {e}')

    def emit_to_player(self, event: str, data: Dict[str, Any], socket_id: str):
        """Emit an event to a specific player."""
        try:
            self.socketio.emit(event, data, room=socket_id)
            logger.debug(f'Emitted {event} to player {socket_id}')
        except Exception as e:
            logger.error(f'Error emitting {event} to player {socket_id}: {e}')

    def _player_list(self, room_code: str) -> Optional[List[Dict[str, Any]]]:
        with self.room_manager.room_operation(room_code):
            room = self.room_manager.get_room(room_code)
            if room is None:
                return None
            return self.room_state_presenter.create_player_list(room)

    # Roster broadcasts

    def broadcast_player_joined(self, room_code: str, player_id: str):
        players = self._player_list(room_code)
        if players is not None:
            self.emit_to_room('player_joined', {'player_id': player_id, 'players': players}, room_code)

    def broadcast_player_reconnected(self, room_code: str, player_id: str, replaced_id: str):
        players = self._player_list(room_code)
        if players is not None:
            self.emit_to_room('player_reconnected', {
                'player_id': player_id,
                'previous_id': replaced_id,
                'players': players
            }, room_code)

    def broadcast_player_left(self, room_code: str, player_id: str):
        players = self._player_list(room_code)
        if players is not None:
            self.emit_to_room('player_left', {'player_id': player_id, 'players': players}, room_code)

    def broadcast_player_kicked(self, room_code: str, kicked_id: str):
        """Tell the room who was kicked, and the kicked player that it happened."""
        players = self._player_list(room_code)
        if players is not None:
            self.emit_to_room('player_kicked', {'kicked_id': kicked_id, 'players': players}, room_code)
        self.emit_to_player('you_were_kicked', {'room_code': room_code}, kicked_id)

    def broadcast_creator_transferred(self, room_code: str, creator_id: str):
        players = self._player_list(room_code)
        if players is not None:
            self.emit_to_room('creator_transferred', {'creator': creator_id, 'players': players}, room_code)

    def broadcast_settings_updated(self, room_code: str, settings: RoomSettings):
        self.emit_to_room('settings_updated', {'settings': settings.to_dict()}, room_code)

    def send_room_state_to_player(self, room_code: str, socket_id: str):
        """Send complete room state to a specific player (for join/reconnect)."""
        with self.room_manager.room_operation(room_code):
            room = self.room_manager.get_room(room_code)
            if room is None:
                return
            room_state_data = self.room_state_presenter.create_room_state_for_player(room, socket_id)
        self.emit_to_player('room_state', room_state_data, socket_id)

    # Round broadcasts

    def broadcast_round_started(self, room_code: str, round_state: RoundState):
        self.emit_to_room('round_started', round_state.to_dict(), room_code)
        logger.debug(f'Broadcasted round {round_state.current_round} start to room {room_code}')

    def broadcast_round_complete(self, room_code: str, result: RoundResult):
        self.emit_to_room('round_complete', result.to_dict(), room_code)

    def broadcast_game_reset(self, room_code: str):
        self.emit_to_room('game_reset', {'room_code': room_code}, room_code)

    def broadcast_game_over(self, room_code: str, winners: List[str]):
        self.emit_to_room('game_over', {'game_winners': list(winners), 'game_ended': True}, room_code)

    def broadcast_room_error(self, room_code: str, error_response: Dict[str, Any]):
        """Errors not tied to a single request, such as a failed scheduled round."""
        self.emit_to_room('error', error_response, room_code)
