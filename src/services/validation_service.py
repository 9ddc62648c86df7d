"""
Validation Service for StatClash

Provides input validation and sanitization functionality separated from error response handling.
"""

import logging
import re
from typing import Any, Dict, Optional

from src.config.game_settings import get_game_settings
from src.core.errors import ErrorCode, InvalidSettings, InvalidStat, ValidationError
from src.core.models import STAT_NAMES
from src.core.room import MAX_WINNERS_CAP

logger = logging.getLogger(__name__)


class ValidationService:
    """Service responsible for input validation and sanitization."""

    # Validation constants
    MAX_ROOM_CODE_LENGTH = 12
    MAX_PLAYER_NAME_LENGTH = 20
    MAX_TARGET_ID_LENGTH = 64

    # Markup and control characters have no place in a display name
    NAME_INJECTION_PATTERNS = [
        r'<[^>]*>',
        r'javascript\s*:',
        r'on\w+\s*=',
        r'\x00',
    ]

    ROOM_CODE_PATTERN = re.compile(r'^[A-Za-z0-9]+$')

    # Socket fields with a dedicated error code when missing
    MISSING_FIELD_CODES = {
        'room_code': (ErrorCode.MISSING_ROOM_CODE, "Room code is required"),
        'player_name': (ErrorCode.MISSING_PLAYER_NAME, "Player name is required"),
        'target_id': (ErrorCode.MISSING_TARGET, "Target player is required"),
    }

    def __init__(self):
        self.game_settings = get_game_settings()

    def validate_room_code(self, room_code: Any) -> str:
        """
        Validate and normalize a room code.

        Returns:
            Upper-cased room code

        Raises:
            ValidationError: If room code is missing or malformed
        """
        if not room_code or not isinstance(room_code, str):
            raise ValidationError(ErrorCode.MISSING_ROOM_CODE, "Room code is required")

        room_code = room_code.strip()
        if not room_code:
            raise ValidationError(ErrorCode.MISSING_ROOM_CODE, "Room code cannot be empty")

        if len(room_code) > self.MAX_ROOM_CODE_LENGTH:
            raise ValidationError(
                ErrorCode.INVALID_ROOM_CODE,
                f"Room code must be {self.MAX_ROOM_CODE_LENGTH} characters or less",
                {"max_length": self.MAX_ROOM_CODE_LENGTH, "actual_length": len(room_code)}
            )

        if not self.ROOM_CODE_PATTERN.match(room_code):
            raise ValidationError(
                ErrorCode.INVALID_ROOM_CODE,
                "Room code can only contain letters and numbers"
            )

        # Codes are generated upper-case; accept whatever case the player typed
        return room_code.upper()

    def validate_player_name(self, player_name: Any) -> str:
        """
        Validate and sanitize player name.

        Returns:
            Stripped player name, original casing kept

        Raises:
            ValidationError: If player name is invalid
        """
        if not player_name or not isinstance(player_name, str):
            raise ValidationError(ErrorCode.MISSING_PLAYER_NAME, "Player name is required")

        player_name = re.sub(r'\s+', ' ', player_name.strip())
        if not player_name:
            raise ValidationError(ErrorCode.MISSING_PLAYER_NAME, "Player name cannot be empty")

        if len(player_name) > self.MAX_PLAYER_NAME_LENGTH:
            raise ValidationError(
                ErrorCode.PLAYER_NAME_TOO_LONG,
                f"Player name must be {self.MAX_PLAYER_NAME_LENGTH} characters or less",
                {"max_length": self.MAX_PLAYER_NAME_LENGTH, "actual_length": len(player_name)}
            )

        for pattern in self.NAME_INJECTION_PATTERNS:
            if re.search(pattern, player_name, re.IGNORECASE):
                logger.warning(f"Rejected player name matching {pattern}")
                raise ValidationError(ErrorCode.INVALID_DATA, "Player name contains invalid characters")

        return player_name

    def validate_stat(self, stat: Any) -> str:
        """
        Validate a stat name.

        Raises:
            InvalidStat: If the stat is not one of the comparable attributes
        """
        if not isinstance(stat, str) or stat.strip().lower() not in STAT_NAMES:
            raise InvalidStat(stat, f"Stat must be one of: {', '.join(STAT_NAMES)}")
        return stat.strip().lower()

    def validate_target_id(self, target_id: Any) -> str:
        if not target_id or not isinstance(target_id, str) or not target_id.strip():
            raise ValidationError(ErrorCode.MISSING_TARGET, "Target player is required")
        if len(target_id) > self.MAX_TARGET_ID_LENGTH:
            raise ValidationError(ErrorCode.INVALID_DATA, "Target player id is too long")
        return target_id.strip()

    def _clamp_setting(self, settings: Dict[str, Any], key: str, upper: int) -> Optional[int]:
        if key not in settings or settings[key] is None:
            return None
        value = settings[key]
        # bool is an int subclass
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidSettings(f"'{key}' must be an integer", {"field": key, "value": repr(value)})
        return max(1, min(value, upper))

    def validate_settings(self, settings: Any) -> Dict[str, int]:
        """
        Validate room settings, clamping out-of-range numbers.

        Returns:
            Dict holding only the settings that were supplied

        Raises:
            InvalidSettings: If settings is not a mapping or a value is not an integer
        """
        if settings is None:
            return {}
        if not isinstance(settings, dict):
            raise InvalidSettings("Settings must be an object")

        validated = {}
        rounds_to_win = self._clamp_setting(settings, 'rounds_to_win', self.game_settings.max_rounds_to_win)
        if rounds_to_win is not None:
            validated['rounds_to_win'] = rounds_to_win
        max_winners = self._clamp_setting(settings, 'max_winners', MAX_WINNERS_CAP)
        if max_winners is not None:
            validated['max_winners'] = max_winners
        return validated

    def validate_socket_data(self, data: Any, required_fields: Optional[list] = None) -> Dict:
        """
        Validate Socket.IO event data.

        Args:
            data: Raw data from Socket.IO event
            required_fields: List of required field names

        Returns:
            Validated data dictionary

        Raises:
            ValidationError: If data is invalid
        """
        if not isinstance(data, dict):
            raise ValidationError(ErrorCode.INVALID_DATA, "Invalid data format - expected dictionary")

        if required_fields:
            missing_fields = [field for field in required_fields if field not in data]
            if len(missing_fields) == 1 and missing_fields[0] in self.MISSING_FIELD_CODES:
                code, message = self.MISSING_FIELD_CODES[missing_fields[0]]
                raise ValidationError(code, message)
            if missing_fields:
                raise ValidationError(
                    ErrorCode.MISSING_DATA,
                    f"Missing required fields: {', '.join(missing_fields)}",
                    {"missing_fields": missing_fields, "required_fields": required_fields}
                )

        return data
