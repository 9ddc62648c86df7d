"""
Session Service - Manages player session data and Socket.IO connections.

This service handles:
- Socket ID to room/name mapping
- Connection liveness, used to decide whether a name may be reclaimed
- Session lookup for handlers
"""

import logging
import threading
from typing import Any, Dict, Optional, Set

logger = logging.getLogger(__name__)


class SessionService:
    """Manages player sessions and Socket.IO connections."""

    def __init__(self):
        """Initialize the session service."""
        # socket_id -> {'room_code', 'player_name'}
        self._player_sessions: Dict[str, Dict[str, str]] = {}
        self._connected: Set[str] = set()
        self._lock = threading.Lock()
        logger.info("SessionService initialized")

    # Connection liveness

    def mark_connected(self, socket_id: str) -> None:
        with self._lock:
            self._connected.add(socket_id)

    def mark_disconnected(self, socket_id: str) -> None:
        with self._lock:
            self._connected.discard(socket_id)

    def is_live(self, socket_id: str) -> bool:
        """Whether the socket is still connected. Injected into the join resolver."""
        return socket_id in self._connected

    def get_connected_count(self) -> int:
        return len(self._connected)

    # Room sessions

    def create_session(self, socket_id: str, room_code: str, player_name: str) -> None:
        """Create or update a player session.

        Args:
            socket_id: Socket.IO connection ID
            room_code: Room the player is in
            player_name: Player's display name
        """
        with self._lock:
            self._player_sessions[socket_id] = {
                'room_code': room_code,
                'player_name': player_name
            }
        logger.debug(f"Created session for player {player_name} in room {room_code}")

    def get_session(self, socket_id: str) -> Optional[Dict[str, str]]:
        return self._player_sessions.get(socket_id)

    def has_session(self, socket_id: str) -> bool:
        return socket_id in self._player_sessions

    def remove_session(self, socket_id: str) -> Optional[Dict[str, str]]:
        """Remove a player session.

        Returns:
            The removed session info or None if not found
        """
        with self._lock:
            session_info = self._player_sessions.pop(socket_id, None)
        if session_info:
            logger.debug(f"Removed session for player {session_info['player_name']}")
        return session_info

    def get_debug_info(self) -> Dict[str, Any]:
        room_counts: Dict[str, int] = {}
        for session_info in self._player_sessions.values():
            room_code = session_info['room_code']
            room_counts[room_code] = room_counts.get(room_code, 0) + 1

        return {
            'total_sessions': len(self._player_sessions),
            'connected_sockets': self.get_connected_count(),
            'sessions_by_room': room_counts,
            'active_rooms': len(room_counts)
        }
