"""
Game Settings Configuration Module

Game-facing view of the application configuration: room limits, round
timings and card fetching. Falls back to AppConfig defaults when no
configuration has been loaded.
"""

import logging
import os

from config_factory import AppConfig, ConfigError, get_config

logger = logging.getLogger(__name__)


class GameSettings:
    """Centralized game settings management."""

    def __init__(self, app_config=None):
        if app_config is None:
            try:
                app_config = get_config()
            except ConfigError as e:
                logger.warning(f"Could not load configuration: {e}, using defaults")
                app_config = AppConfig()
        self._config = app_config

    @property
    def max_players_per_room(self) -> int:
        return self._config.max_players_per_room

    @property
    def room_code_length(self) -> int:
        return self._config.room_code_length

    @property
    def default_rounds_to_win(self) -> int:
        """Points a player needs to become a winner when a room does not say otherwise."""
        return self._config.default_rounds_to_win

    @property
    def default_max_winners(self) -> int:
        return self._config.default_max_winners

    @property
    def max_rounds_to_win(self) -> int:
        """Upper bound that requested rounds_to_win values are clamped to."""
        return self._config.max_rounds_to_win

    @property
    def next_round_delay(self) -> float:
        """Seconds between a round result and the next deal."""
        return self._config.next_round_delay_seconds

    @property
    def rematch_delay(self) -> float:
        return self._config.rematch_delay_seconds

    @property
    def disconnect_grace(self) -> float:
        """Seconds a dropped session keeps its seat before it is treated as a leave."""
        return self._config.disconnect_grace_seconds

    @property
    def round_retry_delay(self) -> float:
        """Seconds before a deal that failed to fetch cards is tried again."""
        return self._config.round_retry_delay_seconds

    @property
    def card_fetch_workers(self) -> int:
        return self._config.card_fetch_workers

    @property
    def request_dedup_window(self) -> float:
        """Seconds within which a repeated request from one client is dropped."""
        if os.environ.get('TESTING') == '1' or 'PYTEST_CURRENT_TEST' in os.environ:
            return 0.01  # Much shorter window for tests
        return self._config.request_dedup_window_seconds


# Global instance for easy access
_game_settings_instance = None


def get_game_settings(app_config=None) -> GameSettings:
    """Get the global game settings, rebuilding them when a config is passed."""
    global _game_settings_instance

    if _game_settings_instance is None or app_config is not None:
        _game_settings_instance = GameSettings(app_config)

    return _game_settings_instance
