"""
Core error definitions for StatClash

Provides error codes, the validation exception and the room-level errors
raised by the session state machine. Nothing here depends on other services.
"""

from enum import Enum
from typing import Dict, Optional


class ErrorCode(Enum):
    """Standardized error codes for the application."""

    # Request Data Errors
    INVALID_DATA = "INVALID_DATA"
    MISSING_DATA = "MISSING_DATA"
    MISSING_ROOM_CODE = "MISSING_ROOM_CODE"
    INVALID_ROOM_CODE = "INVALID_ROOM_CODE"
    MISSING_PLAYER_NAME = "MISSING_PLAYER_NAME"
    PLAYER_NAME_TOO_LONG = "PLAYER_NAME_TOO_LONG"
    MISSING_TARGET = "MISSING_TARGET"
    ALREADY_IN_ROOM = "ALREADY_IN_ROOM"
    NOT_IN_ROOM = "NOT_IN_ROOM"

    # Room Errors
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_FULL = "ROOM_FULL"
    NAME_CONFLICT = "NAME_CONFLICT"
    INVALID_SETTINGS = "INVALID_SETTINGS"

    # Round Errors
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INVALID_STAT = "INVALID_STAT"
    CANNOT_START_ROUND = "CANNOT_START_ROUND"

    # System Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    RATE_LIMITED = "RATE_LIMITED"


class ValidationError(Exception):
    """Custom exception for validation errors."""

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RoomNotFound(ValidationError):
    """No room is registered under the requested code."""

    def __init__(self, room_code: str):
        self.room_code = room_code
        super().__init__(
            ErrorCode.ROOM_NOT_FOUND,
            f"Room {room_code} not found",
            {"room_code": room_code}
        )


class NameConflict(ValidationError):
    """The requested display name is held by a live player in the room."""

    def __init__(self, name: str, room_code: Optional[str] = None):
        self.name = name
        super().__init__(
            ErrorCode.NAME_CONFLICT,
            f"Name '{name}' is already taken in this room, choose a different name",
            {"name": name, "room_code": room_code}
        )


class RoomFull(ValidationError):
    def __init__(self, room_code: str, max_players: int):
        super().__init__(
            ErrorCode.ROOM_FULL,
            f"Room {room_code} is full",
            {"room_code": room_code, "max_players": max_players}
        )


class NotYourTurn(ValidationError):
    def __init__(self, message: str = "It is not your turn to pick a stat"):
        super().__init__(ErrorCode.NOT_YOUR_TURN, message)


class InvalidStat(ValidationError):
    def __init__(self, stat_name, message: Optional[str] = None):
        self.stat_name = stat_name
        super().__init__(
            ErrorCode.INVALID_STAT,
            message or f"Unknown stat '{stat_name}'",
            {"stat": stat_name}
        )


class InvalidSettings(ValidationError):
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(ErrorCode.INVALID_SETTINGS, message, details)


class CardProviderError(ValidationError):
    """The card source could not produce a card; the round was not started."""

    def __init__(self, message: str = "Card service is unavailable, try again shortly"):
        super().__init__(ErrorCode.SERVICE_UNAVAILABLE, message)
