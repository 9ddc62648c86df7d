"""
Unit tests for the configuration factory.
"""

import pytest

from config_factory import AppConfig, ConfigError, ConfigurationFactory, Environment


class TestAppConfig:

    def test_defaults_are_valid(self):
        config = AppConfig()
        assert config.card_source == 'pokeapi'
        assert config.disconnect_grace_seconds == 5.0
        assert config.is_development

    @pytest.mark.parametrize('overrides', [
        {'port': 0},
        {'max_players_per_room': 1},
        {'room_code_length': 3},
        {'default_rounds_to_win': 11},
        {'default_max_winners': 4},
        {'card_source': 'carrier-pigeon'},
        {'card_fetch_workers': 0},
        {'disconnect_grace_seconds': -1},
        {'round_retry_delay_seconds': 0},
        {'max_events_per_minute': 1, 'max_events_per_second': 5},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigError):
            AppConfig(**overrides)

    def test_production_requires_secret(self):
        with pytest.raises(ConfigError):
            AppConfig(environment=Environment.PRODUCTION)


class TestConfigurationFactory:

    def setup_method(self):
        self.factory = ConfigurationFactory()

    def teardown_method(self):
        self.factory.reset()
        self.factory.load_from_environment()

    def test_singleton(self):
        assert ConfigurationFactory() is self.factory

    def test_load_from_environment(self, monkeypatch):
        monkeypatch.setenv('CARD_SOURCE', 'yaml')
        monkeypatch.setenv('NEXT_ROUND_DELAY_SECONDS', '1.5')
        monkeypatch.setenv('MAX_PLAYERS_PER_ROOM', 'lots')

        config = self.factory.load_from_environment()

        assert config.card_source == 'yaml'
        assert config.next_round_delay_seconds == 1.5
        assert config.max_players_per_room == 8
        assert config.is_testing

    def test_load_from_dict(self):
        config = self.factory.load_from_dict({'port': 8080, 'environment': 'testing'})

        assert config.port == 8080
        assert config.environment == Environment.TESTING
        assert self.factory.get_config() is config

    def test_override_setting_revalidates(self):
        self.factory.load_from_dict({})
        self.factory.override_setting('rematch_delay_seconds', 2.0)
        assert self.factory.get_config().rematch_delay_seconds == 2.0

        with pytest.raises(ConfigError):
            self.factory.override_setting('port', 70000)

    def test_get_config_before_load(self):
        self.factory.reset()
        with pytest.raises(ConfigError):
            self.factory.get_config()

    def test_exports(self):
        self.factory.load_from_dict({'card_source': 'yaml'})

        assert self.factory.to_dict()['environment'] == 'development'
        flask_config = self.factory.get_flask_config()
        assert flask_config['CARD_SOURCE'] == 'yaml'
        assert 'SECRET_KEY' in flask_config
