"""
Room Connection Handler

This module handles Socket.IO events related to room membership: creating
and joining rooms, name checks, leaving, kicking, creator transfer, lobby
settings and room state retrieval.
"""

import logging
from typing import Optional

from flask import request

from src.config.game_settings import get_game_settings
from src.core.errors import CardProviderError, ErrorCode, ValidationError
from src.core.models import DepartureResult, RoomSettings
from src.error_handler import with_error_handling
from src.game_manager import DEPARTURE_GAME_OVER, DEPARTURE_REDEAL
from src.services.rate_limit_service import prevent_event_overflow
from .base_handler import BaseRoomHandler

logger = logging.getLogger(__name__)


class RoomConnectionHandler(BaseRoomHandler):
    """Handler for room membership operations."""

    def _ensure_not_in_room(self) -> None:
        if self.session_service.has_session(request.sid):
            raise ValidationError(
                ErrorCode.ALREADY_IN_ROOM,
                'You are already in a room. Leave it first.'
            )

    @prevent_event_overflow('create_room')
    @with_error_handling
    def handle_create_room(self, data):
        """
        Handle a player creating a new room.

        Expected data format:
        {
            'player_name': 'display_name',
            'settings': {'rounds_to_win': 3, 'max_winners': 1}   # optional
        }
        """
        self.log_handler_start('handle_create_room', data)

        validated = self.validate_data_dict(data, ['player_name'])
        player_name = self.validation_service.validate_player_name(validated['player_name'])
        requested = self.validation_service.validate_settings(validated.get('settings'))
        self._ensure_not_in_room()

        if self.room_manager.concurrency_control.check_duplicate_request(f'create_room:{request.sid}'):
            return

        game_settings = get_game_settings()
        settings = RoomSettings(
            rounds_to_win=requested.get('rounds_to_win', game_settings.default_rounds_to_win),
            max_winners=requested.get('max_winners', game_settings.default_max_winners)
        )
        room = self.room_manager.create_room(request.sid, player_name, settings)

        self.join_socketio_room(room.code)
        self.session_service.create_session(request.sid, room.code, player_name)

        self.log_handler_success('handle_create_room', f'Player {player_name} created room {room.code}')

        self.emit_success('room_created', {
            'room_code': room.code,
            'player_id': request.sid,
            'player_name': player_name,
            'players': self.broadcast_service.room_state_presenter.create_player_list(room),
            'settings': room.settings.to_dict()
        })

    @prevent_event_overflow('join_room')
    @with_error_handling
    def handle_join_room(self, data):
        """
        Handle player joining a room, or reclaiming their seat after a drop.

        Expected data format:
        {
            'room_code': 'ABC123',
            'player_name': 'display_name'
        }
        """
        self.log_handler_start('handle_join_room', data)

        room_code, player_name = self.validate_room_join_data(data)
        self._ensure_not_in_room()

        result = self.room_manager.join_room(room_code, request.sid, player_name)
        player = result.player

        self.join_socketio_room(room_code)
        self.session_service.create_session(request.sid, room_code, player.name)

        if result.reconnected:
            self.session_service.remove_session(result.replaced_session_id)
            self.auto_flow_service.cancel_disconnect(result.replaced_session_id)

        self.log_handler_success(
            'handle_join_room',
            f'Player {player.name} {"rejoined" if result.reconnected else "joined"} room {room_code}'
        )

        self.emit_success('room_joined', {
            'room_code': room_code,
            'player_id': request.sid,
            'player_name': player.name,
            'reconnected': result.reconnected
        })

        if result.reconnected:
            self.broadcast_service.broadcast_player_reconnected(room_code, request.sid, result.replaced_session_id)
        else:
            self.broadcast_service.broadcast_player_joined(room_code, request.sid)

        self.broadcast_service.send_room_state_to_player(room_code, request.sid)

    @prevent_event_overflow('check_name')
    @with_error_handling
    def handle_check_name(self, data):
        """Tell the caller whether a name is free in a room."""
        room_code, player_name = self.validate_room_join_data(data)
        available = self.room_manager.check_name(room_code, player_name)
        self.emit_success('name_checked', {
            'room_code': room_code,
            'player_name': player_name,
            'available': available
        })

    @with_error_handling
    def handle_leave_room(self, data=None):
        """Handle player leaving their current room."""
        self.log_handler_start('handle_leave_room', data)

        session_info = self.require_session(data)
        room_code = session_info['room_code']

        self.leave_socketio_room(room_code)
        self.process_leave(room_code, request.sid)

        self.log_handler_success('handle_leave_room', f'Player {session_info["player_name"]} left room {room_code}')
        self.emit_success('room_left', {'room_code': room_code})

    @prevent_event_overflow('kick_player')
    @with_error_handling
    def handle_kick_player(self, data):
        """
        Handle the creator removing another player.

        Expected data format:
        {
            'room_code': 'ABC123',
            'target_id': '<session id of the player>'
        }
        """
        self.log_handler_start('handle_kick_player', data)

        session_info = self.require_session(data)
        room_code = session_info['room_code']
        target_id = self.validate_target_data(data)

        result = self.room_manager.kick_player(room_code, request.sid, target_id)
        if result is None:
            return

        self.session_service.remove_session(target_id)
        self.auto_flow_service.cancel_disconnect(target_id)
        self.leave_socketio_room(room_code, sid=target_id)
        self.broadcast_service.broadcast_player_kicked(room_code, target_id)
        self._settle_game_after_departure(room_code, result)

        self.log_handler_success('handle_kick_player', f'{result.player.name} kicked from room {room_code}')

    @prevent_event_overflow('transfer_creator')
    @with_error_handling
    def handle_transfer_creator(self, data):
        session_info = self.require_session(data)
        room_code = session_info['room_code']
        target_id = self.validate_target_data(data)

        if self.room_manager.transfer_creator(room_code, request.sid, target_id):
            self.broadcast_service.broadcast_creator_transferred(room_code, target_id)
            self.log_handler_success('handle_transfer_creator', f'creator of {room_code} is now {target_id}')

    @prevent_event_overflow('update_settings')
    @with_error_handling
    def handle_update_settings(self, data):
        """
        Handle the creator changing lobby settings.

        Out-of-range numbers are clamped; max_winners is further limited by
        the number of players in the room.
        """
        session_info = self.require_session(data)
        room_code = session_info['room_code']
        validated = self.validate_data_dict(data, ['settings'])
        settings = self.validation_service.validate_settings(validated['settings'])

        updated = self.room_manager.update_settings(room_code, request.sid, settings)
        if updated is not None:
            self.broadcast_service.broadcast_settings_updated(room_code, updated)

    @prevent_event_overflow('get_room_state')
    @with_error_handling
    def handle_get_room_state(self, data=None):
        """Handle request for current room state."""
        session_info = self.require_session(data)
        self.broadcast_service.send_room_state_to_player(session_info['room_code'], request.sid)

    # Departures; these run outside a request context as well

    def process_leave(self, room_code: str, session_id: str) -> Optional[DepartureResult]:
        """
        Remove a player as a voluntary leave and tell the room.

        Used for leave_room and for disconnects whose grace period ran out.
        """
        result = self.room_manager.leave_room(room_code, session_id)
        self.session_service.remove_session(session_id)
        if result is None or result.room_deleted:
            return result

        self.broadcast_service.broadcast_player_left(room_code, session_id)
        self._settle_game_after_departure(room_code, result)
        return result

    def _settle_game_after_departure(self, room_code: str, result: DepartureResult) -> None:
        if result.new_creator:
            self.broadcast_service.broadcast_creator_transferred(room_code, result.new_creator)

        try:
            outcome, payload = self.game_manager.handle_player_departure(room_code)
        except ValidationError as e:
            logger.warning(f'Could not settle room {room_code} after departure: {e.message}')
            self.broadcast_service.broadcast_room_error(
                room_code, self.error_response_factory.create_response_for_exception(e)
            )
            if isinstance(e, CardProviderError):
                self.auto_flow_service.schedule_retry(room_code)
            return

        if outcome == DEPARTURE_GAME_OVER:
            self.auto_flow_service.cancel_room(room_code)
            self.broadcast_service.broadcast_game_over(room_code, payload)
        elif outcome == DEPARTURE_REDEAL:
            self.broadcast_service.broadcast_round_started(room_code, payload)
