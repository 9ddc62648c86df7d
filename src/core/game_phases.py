"""
Room Phase Enumeration

Defines the phase states a room moves through during a game.
"""

from enum import Enum


class RoomPhase(Enum):
    """Room phase enumeration."""
    LOBBY = "lobby"
    PICKING = "picking"
    ROUND_COMPLETE = "round_complete"
    GAME_OVER = "game_over"


# Phases in which a game is running and departures can affect the outcome
ACTIVE_GAME_PHASES = (RoomPhase.PICKING, RoomPhase.ROUND_COMPLETE)
