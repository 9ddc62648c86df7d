"""
Unit tests for GameSettings.
"""

from unittest.mock import patch

from config_factory import AppConfig, ConfigError
from src.config.game_settings import GameSettings, get_game_settings


class TestGameSettings:

    def test_reads_round_timings_from_config(self):
        settings = GameSettings(AppConfig(next_round_delay_seconds=2.5, disconnect_grace_seconds=0,
                                          round_retry_delay_seconds=4))

        assert settings.next_round_delay == 2.5
        assert settings.disconnect_grace == 0
        assert settings.rematch_delay == 1.0
        assert settings.round_retry_delay == 4

    def test_falls_back_to_defaults_without_config(self):
        with patch('src.config.game_settings.get_config', side_effect=ConfigError('not loaded')):
            settings = GameSettings()

        assert settings.max_players_per_room == 8
        assert settings.default_rounds_to_win == 3

    def test_dedup_window_is_short_under_tests(self):
        assert GameSettings(AppConfig()).request_dedup_window == 0.01

    def test_passing_a_config_rebuilds_the_global_instance(self):
        first = get_game_settings()
        assert get_game_settings() is first

        rebuilt = get_game_settings(AppConfig(max_players_per_room=4))

        assert rebuilt is not first
        assert get_game_settings().max_players_per_room == 4
