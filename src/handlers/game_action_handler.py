"""
Game Action Handler

This module handles Socket.IO events related to game actions: starting a
game, picking a stat and asking for a rematch.
"""

import logging

from flask import request

from src.error_handler import with_error_handling
from src.services.rate_limit_service import prevent_event_overflow
from .base_handler import BaseGameHandler

logger = logging.getLogger(__name__)


class GameActionHandler(BaseGameHandler):
    """Handler for game action operations."""

    def _is_creator(self, room_code: str, action: str) -> bool:
        if self.room_manager.is_creator(room_code, request.sid):
            return True
        logger.info(f'Ignored {action} from non-creator {request.sid} in room {room_code}')
        return False

    @prevent_event_overflow('start_game')
    @with_error_handling
    def handle_start_game(self, data=None):
        """
        Handle the creator starting a game.

        Resets scores and winners, deals every player a card and broadcasts
        round_started. Requests from other players are ignored.
        """
        self.log_handler_start('handle_start_game', data)

        session_info = self.require_session(data)
        room_code = session_info['room_code']
        if not self._is_creator(room_code, 'start_game'):
            return

        round_state = self.game_manager.start_game(room_code)
        # A failed deal leaves any pending round in place
        self.auto_flow_service.cancel_room(room_code)
        self.broadcast_service.broadcast_round_started(room_code, round_state)

        self.log_handler_success('handle_start_game', f'Game started in room {room_code}')

    @prevent_event_overflow('select_stat')
    @with_error_handling
    def handle_select_stat(self, data):
        """
        Handle the picker choosing the stat for the current round.

        Expected data format:
        {
            'room_code': 'ABC123',
            'stat': 'attack'
        }
        """
        self.log_handler_start('handle_select_stat', data)

        session_info = self.require_session(data)
        room_code = session_info['room_code']
        validated = self.validate_data_dict(data, ['stat'])
        stat = self.validation_service.validate_stat(validated['stat'])

        result = self.game_manager.select_stat(room_code, request.sid, stat)
        self.broadcast_service.broadcast_round_complete(room_code, result)

        if not result.game_ended:
            self.auto_flow_service.schedule_next_round(room_code)

        self.log_handler_success(
            'handle_select_stat',
            f'Room {room_code} round decided on {stat}, winners {result.round_winners}'
        )

    @prevent_event_overflow('rematch')
    @with_error_handling
    def handle_rematch(self, data=None):
        """Handle the creator asking for a rematch with the same players."""
        self.log_handler_start('handle_rematch', data)

        session_info = self.require_session(data)
        room_code = session_info['room_code']
        if not self._is_creator(room_code, 'rematch'):
            return

        self.auto_flow_service.cancel_room(room_code)
        self.game_manager.rematch(room_code)
        self.broadcast_service.broadcast_game_reset(room_code)
        self.auto_flow_service.schedule_rematch_round(room_code)

        self.log_handler_success('handle_rematch', f'Rematch scheduled in room {room_code}')
