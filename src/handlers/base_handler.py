"""
Base Handler Classes

This module provides base classes for Socket.IO handlers with common patterns
for validation, error handling, session management, and response formatting.
"""

import logging
from abc import ABC
from typing import Any, Dict, Optional, Tuple

from flask import request
from flask_socketio import emit, join_room, leave_room

from container import get_container
from src.core.errors import ErrorCode, ValidationError

logger = logging.getLogger(__name__)


class BaseHandler(ABC):
    """
    Abstract base class for all Socket.IO handlers.

    Provides service access from the application container, session lookup,
    payload validation and standardized response formatting.
    """

    def __init__(self):
        self._container = get_container()

    @property
    def room_manager(self):
        return self._container.get('RoomManager')

    @property
    def game_manager(self):
        return self._container.get('GameManager')

    @property
    def validation_service(self):
        return self._container.get('ValidationService')

    @property
    def error_response_factory(self):
        return self._container.get('ErrorResponseFactory')

    @property
    def session_service(self):
        return self._container.get('SessionService')

    @property
    def broadcast_service(self):
        return self._container.get('BroadcastService')

    @property
    def auto_flow_service(self):
        return self._container.get('AutoGameFlowService')

    def get_current_session(self) -> Optional[Dict[str, Any]]:
        """Get the current session info for the requesting client."""
        return self.session_service.get_session(request.sid)  # type: ignore[attr-defined]

    def require_session(self, data: Any = None) -> Dict[str, Any]:
        """
        Get the current session info, raising an error if not in a room.

        When the payload names a room_code it must be the session's room.

        Raises:
            ValidationError: If the player is not in that room
        """
        session_info = self.get_current_session()
        if not session_info:
            raise ValidationError(
                ErrorCode.NOT_IN_ROOM,
                'You are not currently in a room'
            )

        if isinstance(data, dict) and data.get('room_code'):
            room_code = self.validation_service.validate_room_code(data['room_code'])
            if room_code != session_info['room_code']:
                raise ValidationError(
                    ErrorCode.NOT_IN_ROOM,
                    f'You are not in room {room_code}'
                )
        return session_info

    def validate_data_dict(self, data: Any, required_fields: Optional[list] = None) -> Dict[str, Any]:
        """Validate that data is a dictionary and contains required fields."""
        return self.validation_service.validate_socket_data(data, required_fields)

    def emit_success(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Emit a success response to the requesting client."""
        response = self.error_response_factory.create_success_response(data or {})
        emit(event_name, response)

    def log_handler_start(self, handler_name: str, data: Any = None) -> None:
        logger.info(f'{handler_name} called by client: {request.sid}')  # type: ignore[attr-defined]
        if data:
            logger.debug(f'{handler_name} data: {data}')

    def log_handler_success(self, handler_name: str, message: Optional[str] = None) -> None:
        log_msg = f'{handler_name} completed successfully for client: {request.sid}'  # type: ignore[attr-defined]
        if message:
            log_msg += f' - {message}'
        logger.info(log_msg)


class RoomHandlerMixin:
    """
    Mixin for handlers that deal with room operations.

    Joins and leaves the Socket.IO rooms used for broadcasting.
    """

    def join_socketio_room(self, room_code: str) -> None:
        join_room(room_code)
        logger.debug(f'Client {request.sid} joined Socket.IO room: {room_code}')  # type: ignore[attr-defined]

    def leave_socketio_room(self, room_code: str, sid: Optional[str] = None) -> None:
        if sid is None:
            leave_room(room_code)
        else:
            leave_room(room_code, sid=sid, namespace='/')
        logger.debug(f'Client {sid or request.sid} left Socket.IO room: {room_code}')  # type: ignore[attr-defined]


class ValidationHandlerMixin:
    """
    Mixin for handlers that need common validation patterns.

    Provides standardized extraction of the payload fields shared by
    several events.
    """

    # Provided by BaseHandler
    validation_service: Any

    def validate_data_dict(self, data: Any, required_fields: Optional[list] = None) -> Dict[str, Any]:
        raise NotImplementedError("This method should be provided by BaseHandler")

    def validate_room_join_data(self, data: Any) -> Tuple[str, str]:
        """
        Validate room join data and extract room_code and player_name.

        Raises:
            ValidationError: If validation fails
        """
        validated_data = self.validate_data_dict(data, ['room_code', 'player_name'])
        room_code = self.validation_service.validate_room_code(validated_data['room_code'])
        player_name = self.validation_service.validate_player_name(validated_data['player_name'])
        return room_code, player_name

    def validate_target_data(self, data: Any) -> str:
        validated_data = self.validate_data_dict(data, ['target_id'])
        return self.validation_service.validate_target_id(validated_data['target_id'])


class BaseRoomHandler(BaseHandler, RoomHandlerMixin, ValidationHandlerMixin):
    """Base class for handlers that deal with room operations."""
    pass


class BaseGameHandler(BaseHandler, ValidationHandlerMixin):
    """Base class for handlers that deal with game operations."""
    pass
