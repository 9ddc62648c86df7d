"""
Configuration Factory - Centralized configuration management for StatClash

Every setting lives on AppConfig and can be supplied through an environment
variable of the same name in upper case (CARD_SOURCE, DISCONNECT_GRACE_SECONDS, ...).
"""

import os
import logging
from typing import Any, Dict, Optional
from enum import Enum
from dataclasses import dataclass, fields


class Environment(Enum):
    """Environment types for configuration"""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class ConfigError(Exception):
    """Configuration-related errors"""
    pass


CARD_SOURCES = ('pokeapi', 'yaml')
DEV_SECRET_KEY = 'dev-secret-key-change-in-production'

# Inclusive bounds checked on every (re)validation
NUMERIC_BOUNDS = {
    'port': (1, 65535),
    'max_players_per_room': (2, 50),
    'room_code_length': (4, 12),
    'max_rounds_to_win': (1, 100),
    'default_max_winners': (1, 3),
    'next_round_delay_seconds': (0, 60),
    'rematch_delay_seconds': (0, 60),
    'disconnect_grace_seconds': (0, 300),
    'round_retry_delay_seconds': (1, 60),
    'card_fetch_workers': (1, 64),
    'max_events_per_second': (1, 1000),
}


@dataclass
class AppConfig:
    """Application configuration with type safety and validation"""

    # Flask
    secret_key: str = DEV_SECRET_KEY
    debug: bool = False
    flask_env: str = 'development'

    # Server
    host: str = '0.0.0.0'
    port: int = 5000

    # Rooms
    max_players_per_room: int = 8
    room_code_length: int = 6
    default_rounds_to_win: int = 3
    default_max_winners: int = 1
    max_rounds_to_win: int = 10

    # Round flow
    next_round_delay_seconds: float = 3.0
    rematch_delay_seconds: float = 1.0
    disconnect_grace_seconds: float = 5.0  # window in which a dropped player may reclaim their seat
    round_retry_delay_seconds: float = 5.0  # first wait after a failed deal, doubled on each further failure

    # Cards
    card_source: str = 'pokeapi'
    cards_file: str = 'cards.yaml'
    pokeapi_base_url: str = 'https://pokeapi.co/api/v2'
    pokeapi_timeout_seconds: float = 5.0
    pokeapi_max_pokemon_id: int = 898
    card_fetch_workers: int = 8

    # Rate limiting
    max_events_rate_tracking: int = 100
    max_global_events_tracking: int = 1000
    max_events_per_second: int = 10
    max_events_per_minute: int = 100
    rate_limit_window_seconds: int = 60
    request_dedup_window_seconds: float = 1.0

    # Gunicorn
    worker_connections: int = 1000
    timeout: int = 30
    keepalive: int = 2
    log_level: str = 'info'

    environment: Environment = Environment.DEVELOPMENT

    def __post_init__(self):
        self._validate()

    def _validate(self):
        for name, (low, high) in NUMERIC_BOUNDS.items():
            value = getattr(self, name)
            if value < low or value > high:
                raise ConfigError(f"Invalid {name}: {value} (expected {low}..{high})")

        if self.default_rounds_to_win < 1 or self.default_rounds_to_win > self.max_rounds_to_win:
            raise ConfigError(f"Invalid default_rounds_to_win: {self.default_rounds_to_win}")

        if self.card_source not in CARD_SOURCES:
            raise ConfigError(f"Invalid card_source: {self.card_source} (expected one of {', '.join(CARD_SOURCES)})")

        if self.pokeapi_timeout_seconds <= 0 or self.pokeapi_timeout_seconds > 60:
            raise ConfigError(f"Invalid pokeapi_timeout_seconds: {self.pokeapi_timeout_seconds}")

        if self.pokeapi_max_pokemon_id < 1:
            raise ConfigError(f"Invalid pokeapi_max_pokemon_id: {self.pokeapi_max_pokemon_id}")

        if self.max_events_per_minute < self.max_events_per_second or self.max_events_per_minute > 10000:
            raise ConfigError(f"Invalid max_events_per_minute: {self.max_events_per_minute}")

        if self.environment == Environment.PRODUCTION and self.secret_key == DEV_SECRET_KEY:
            raise ConfigError("Production environment requires a secure SECRET_KEY")

    @property
    def is_development(self) -> bool:
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        return self.environment == Environment.TESTING


def _environment_for(flask_env: str) -> Environment:
    if flask_env == 'development':
        return Environment.DEVELOPMENT
    if flask_env == 'testing':
        return Environment.TESTING
    return Environment.PRODUCTION


class ConfigurationFactory:
    """
    Loads and holds the process-wide AppConfig.

    A singleton: every ConfigurationFactory() returns the same instance, so
    app startup, gunicorn hooks and tests all see one configuration.
    """

    _instance: Optional['ConfigurationFactory'] = None
    _config: Optional[AppConfig] = None

    def __new__(cls) -> 'ConfigurationFactory':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, '_initialized'):
            self._logger = logging.getLogger(__name__)
            self._env_overrides: Dict[str, Any] = {}
            self._initialized = True

    def _convert(self, env_key: str, raw: str, default: Any) -> Any:
        if isinstance(default, bool):
            return raw.lower() in ('true', '1', 'yes', 'on')
        if isinstance(default, (int, float)):
            try:
                return type(default)(raw)
            except ValueError:
                self._logger.warning(f"Invalid value for {env_key}: {raw}, using default: {default}")
                return default
        return raw

    def load_from_environment(self, env_prefix: str = '') -> AppConfig:
        """
        Build the configuration from environment variables.

        FLASK_ENV picks the environment (development, testing, anything else
        is production) and the default for DEBUG. Unparseable numbers fall
        back to their defaults with a warning.

        Args:
            env_prefix: Optional prefix for every variable (e.g. 'STATCLASH_')
        """
        flask_env = os.environ.get(f'{env_prefix}FLASK_ENV', 'development')
        environment = _environment_for(flask_env)

        values: Dict[str, Any] = {
            'flask_env': flask_env,
            'environment': environment,
            'debug': environment != Environment.PRODUCTION,
        }
        defaults = AppConfig()
        for config_field in fields(AppConfig):
            if config_field.name in ('flask_env', 'environment'):
                continue
            env_key = f'{env_prefix}{config_field.name.upper()}'
            raw = os.environ.get(env_key)
            if raw is not None:
                values[config_field.name] = self._convert(env_key, raw, getattr(defaults, config_field.name))

        for key, value in self._env_overrides.items():
            if hasattr(defaults, key):
                values[key] = value

        self._config = AppConfig(**values)
        self._logger.info(f"Configuration loaded for environment: {environment.value}")
        return self._config

    def load_from_dict(self, config_dict: Dict[str, Any]) -> AppConfig:
        """Load configuration from a dictionary (useful for testing)."""
        values = dict(config_dict)
        if isinstance(values.get('environment'), str):
            values['environment'] = Environment(values['environment'])
        self._config = AppConfig(**values)
        return self._config

    def override_setting(self, key: str, value: Any) -> 'ConfigurationFactory':
        """Pin a setting for this and later loads; the current config is re-validated."""
        self._env_overrides[key] = value
        if self._config is not None and hasattr(self._config, key):
            setattr(self._config, key, value)
            self._config._validate()
        return self

    def get_config(self) -> AppConfig:
        if self._config is None:
            raise ConfigError("Configuration not loaded. Call load_from_environment() or load_from_dict() first.")
        return self._config

    def reset(self) -> 'ConfigurationFactory':
        """Reset the factory (useful for testing)"""
        self._config = None
        self._env_overrides.clear()
        return self

    def to_dict(self) -> Dict[str, Any]:
        config = self.get_config()
        config_dict = {}
        for config_field in fields(config):
            value = getattr(config, config_field.name)
            config_dict[config_field.name] = value.value if isinstance(value, Environment) else value
        return config_dict

    def get_flask_config(self) -> Dict[str, Any]:
        """Settings for app.config.update()."""
        config = self.get_config()
        return {
            'SECRET_KEY': config.secret_key,
            'DEBUG': config.debug,
            'ENV': config.flask_env,
            'MAX_PLAYERS_PER_ROOM': config.max_players_per_room,
            'CARD_SOURCE': config.card_source,
            'CARDS_FILE': config.cards_file,
        }


# Global factory instance
_config_factory = ConfigurationFactory()


def get_config() -> AppConfig:
    """Get the global application configuration"""
    return _config_factory.get_config()


def load_config(env_prefix: str = '') -> AppConfig:
    """Load configuration from environment variables"""
    return _config_factory.load_from_environment(env_prefix)
