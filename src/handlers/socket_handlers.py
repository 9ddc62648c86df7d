"""
Socket.IO event handlers for the StatClash game.

This module provides the main registration function and the
connection/disconnection handlers. Game events are dispatched through the
event router to the room and game handlers.
"""

import logging
import os
from flask import request
from flask_socketio import emit

from config_factory import get_config
from container import get_container
from src.services.rate_limit_service import get_event_queue_manager
from .socket_event_router import setup_router
from .room_connection_handler import RoomConnectionHandler
from .game_action_handler import GameActionHandler

logger = logging.getLogger(__name__)

_room_handler = None


def register_socket_handlers(socketio_instance):
    """Register all socket handlers with the SocketIO instance."""
    global _room_handler

    router = setup_router(socketio_instance)

    room_handler = RoomConnectionHandler()
    game_handler = GameActionHandler()
    _room_handler = room_handler

    # Connection events bypass the router
    socketio_instance.on_event('connect', handle_connect)
    socketio_instance.on_event('disconnect', handle_disconnect)

    # Room membership
    router.register_route('create_room', room_handler.handle_create_room)
    router.register_route('join_room', room_handler.handle_join_room)
    router.register_route('check_name', room_handler.handle_check_name)
    router.register_route('leave_room', room_handler.handle_leave_room)
    router.register_route('kick_player', room_handler.handle_kick_player)
    router.register_route('transfer_creator', room_handler.handle_transfer_creator)
    router.register_route('update_settings', room_handler.handle_update_settings)
    router.register_route('get_room_state', room_handler.handle_get_room_state)

    # Game actions
    router.register_route('start_game', game_handler.handle_start_game)
    router.register_route('select_stat', game_handler.handle_select_stat)
    router.register_route('rematch', game_handler.handle_rematch)

    router.register_with_socketio()

    logger.info(f"Registered {len(router.get_registered_events())} socket event handlers")
    return router


def handle_connect(auth=None):
    """Handle client connection with optional Origin enforcement in production."""
    app_config = get_config()
    allowed_origins_env = os.environ.get('SOCKETIO_CORS_ALLOWED_ORIGINS', '')

    origin = request.headers.get('Origin')
    # Enforce Origin in production if a CORS allowlist is configured
    if app_config.is_production and allowed_origins_env:
        allowed = {o.strip() for o in allowed_origins_env.split(',') if o.strip()}
        if origin and origin not in allowed:
            logger.warning(f'Rejecting connection from disallowed Origin: {origin}')
            return False

    get_container().get('SessionService').mark_connected(request.sid)
    logger.info(f'Client connected: {request.sid} from Origin: {origin}')
    emit('connected', {'status': 'Connected to StatClash server'})


def handle_disconnect(reason=None):
    """
    Handle client disconnection.

    A player who drops keeps their seat for the grace period; if they have
    not rejoined under their name by then, they are removed as if they had
    left.
    """
    container = get_container()
    session_service = container.get('SessionService')
    auto_flow_service = container.get('AutoGameFlowService')

    sid = request.sid
    session_service.mark_disconnected(sid)
    event_queue_manager = get_event_queue_manager()
    if event_queue_manager is not None:
        event_queue_manager.forget_client(sid)

    logger.info(f'Client disconnected: {sid}')

    if session_service.has_session(sid):
        auto_flow_service.schedule_disconnect(sid, expire_disconnected_session)


def expire_disconnected_session(session_id: str) -> None:
    """Remove a dropped player whose grace period ran out."""
    container = get_container()
    session_service = container.get('SessionService')
    room_manager = container.get('RoomManager')

    session_info = session_service.get_session(session_id)
    if session_info is None or session_service.is_live(session_id):
        return

    room_code = session_info['room_code']
    room = room_manager.get_room(room_code)
    if room is None or not room.has_player(session_id):
        session_service.remove_session(session_id)
        return

    logger.info(f"Removing {session_info['player_name']} from room {room_code} after disconnect")
    handler = _room_handler or RoomConnectionHandler()
    handler.process_leave(room_code, session_id)
