"""
REST API endpoints for the StatClash application.
"""

import logging

from flask import Blueprint, jsonify

from container import get_container
from src.core.errors import ErrorCode, ValidationError
from src.services.rate_limit_service import get_event_queue_manager

logger = logging.getLogger(__name__)


def create_api_blueprint():
    """Create the API Blueprint; services are resolved from the container per request."""
    api = Blueprint('api', __name__)

    @api.route('/api/health')
    def health():
        container = get_container()
        event_queue_manager = get_event_queue_manager()
        return jsonify({
            'status': 'ok',
            'rooms': len(container.get('RoomManager').get_all_rooms()),
            'sessions': container.get('SessionService').get_debug_info(),
            'rate_limits': event_queue_manager.get_queue_stats() if event_queue_manager else None
        })

    @api.route('/api/rooms/<room_code>')
    def room_summary(room_code):
        """Public lobby summary of one room."""
        container = get_container()
        room_manager = container.get('RoomManager')
        error_response_factory = container.get('ErrorResponseFactory')
        try:
            room_code = container.get('ValidationService').validate_room_code(room_code)
            room = room_manager.require_room(room_code)
        except ValidationError as e:
            status = 404 if e.code == ErrorCode.ROOM_NOT_FOUND else 400
            logger.info(f"Room lookup for {room_code} failed: {e.code.value}")
            return jsonify(error_response_factory.create_response_for_exception(e)), status

        with room_manager.room_operation(room_code):
            summary = container.get('BroadcastService').room_state_presenter.create_lobby_summary(room)
        return jsonify(error_response_factory.create_success_response(summary))

    return api
