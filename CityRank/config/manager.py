"""
Configuration manager for CityRank.

Implements the ConfigManager singleton: dotted-key access to a nested
configuration dictionary built from defaults, an optional YAML/JSON file and
environment variables.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import yaml

from CityRank.config.defaults import DEFAULT_CONFIG
from CityRank.config.schema import validate_config
from CityRank.config.utils import deep_merge
from CityRank.utils.logging import get_logger

CONFIG_FILE_NAME = 'cityrank.yml'
DATABASE_URI_ENV_VAR = 'CITYRANK_DATABASE_URI'

# Docker-style connection variables; any of them switches the store to PostgreSQL
_POSTGRES_ENV_VARS = {
    'DB_HOST': 'host',
    'DB_PORT': 'port',
    'DB_NAME': 'database',
    'DB_USER': 'user',
    'DB_PASSWORD': 'password',
}


class ConfigManager:
    """
    Singleton holding the active CityRank configuration.

    Examples:
        >>> config = get_config()
        >>> config.get("search.weights.text")
        0.7
        >>> config.set("geolocation.timeout", 2.0)
    """
    _instance = None

    def __new__(cls) -> 'ConfigManager':
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self) -> None:
        """Reset the configuration to defaults plus environment overrides."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self.logger = get_logger(__name__)
        self._apply_env_overrides()

    def _apply_env_overrides(self) -> None:
        pg_overrides = {
            key: os.environ[env_var]
            for env_var, key in _POSTGRES_ENV_VARS.items()
            if os.environ.get(env_var)
        }
        if pg_overrides:
            if 'port' in pg_overrides:
                try:
                    pg_overrides['port'] = int(pg_overrides['port'])
                except ValueError:
                    self.logger.warning(f"Ignoring non-numeric DB_PORT: {pg_overrides['port']}")
                    del pg_overrides['port']
            self._config['database']['type'] = 'postgresql'
            self._config['database']['postgresql'].update(pg_overrides)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Hierarchical key, e.g. "search.limits.default"
            default: Value returned when the key is absent
        """
        if not key:
            return default

        value = self._config
        for part in key.split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation, creating sections as needed."""
        if not key:
            return

        parts = key.split('.')
        config = self._config
        for part in parts[:-1]:
            if part not in config or not isinstance(config[part], dict):
                config[part] = {}
            config = config[part]

        config[parts[-1]] = value

    def get_database_uri(self) -> str:
        """
        Build the database URI from the configuration.

        CITYRANK_DATABASE_URI, when set, wins over everything else.
        """
        env_uri = os.environ.get(DATABASE_URI_ENV_VAR)
        if env_uri:
            return env_uri

        db_type = self.get("database.type", "sqlite")

        if db_type == "postgresql":
            host = self.get("database.postgresql.host", "localhost")
            port = self.get("database.postgresql.port", 5432)
            database = self.get("database.postgresql.database", "cities_db")
            user = self.get("database.postgresql.user")
            password = self.get("database.postgresql.password")

            uri = "postgresql://"
            if user:
                uri += quote(str(user), safe="")
                if password:
                    uri += f":{quote(str(password), safe='')}"
                uri += "@"
            return uri + f"{host}:{port}/{quote(str(database), safe='')}"

        if db_type != "sqlite":
            self.logger.warning(f"Unsupported database type: {db_type}, falling back to SQLite")

        path = self.get("database.sqlite.path")
        if path is None:
            path = str(Path.home() / ".cityrank" / "data" / "cities.db")
            os.makedirs(os.path.dirname(path), exist_ok=True)

        return f"sqlite:///{path}"

    def get_scoring_weights(self) -> Dict[str, float]:
        """Return the population/text/distance weights of the composite score."""
        return {
            "population": float(self.get("search.weights.population", 0.2)),
            "text": float(self.get("search.weights.text", 0.7)),
            "distance": float(self.get("search.weights.distance", 0.1)),
        }

    def get_search_limits(self) -> Dict[str, int]:
        return {
            "default": self.get("search.limits.default", 10),
            "max": self.get("search.limits.max", 100),
        }

    def get_candidate_settings(self) -> Dict[str, int]:
        return {
            "window": self.get("search.candidates.window", 5000),
        }

    def get_geolocation_settings(self) -> Dict[str, Any]:
        default_location = self.get("geolocation.default_location") or {}
        return {
            "enabled": self.get("geolocation.enabled", True),
            "url": self.get("geolocation.url", "http://ip-api.com/json/{ip}"),
            "timeout": self.get("geolocation.timeout", 3.0),
            "default_lat": default_location.get("lat", 50.6333),
            "default_lon": default_location.get("lon", 3.0667),
            "cache_ttl": self.get("geolocation.cache_ttl", 86400),
        }

    def find_config_file(self) -> Optional[Path]:
        """
        Look for a configuration file in the standard locations:
        ./cityrank.yml, then ~/.cityrank/cityrank.yml.
        """
        search_locations = [
            Path.cwd() / CONFIG_FILE_NAME,
            Path.home() / '.cityrank' / CONFIG_FILE_NAME,
        ]

        for path in search_locations:
            if path.is_file():
                self.logger.debug(f"Found configuration file at: {path}")
                return path

        return None

    def load_config(self) -> bool:
        """
        Load the first configuration file found in the standard locations.

        Returns:
            True if a file was found, valid and loaded; False otherwise
        """
        config_path = self.find_config_file()

        if not config_path:
            self.logger.debug("No configuration file found, using defaults")
            return False

        try:
            errors = self.load_from_file(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            self.logger.error(f"Failed to load configuration file {config_path}: {e}")
            return False

        if errors:
            self.logger.warning(f"Configuration validation errors in {config_path}: {errors}")
            return False

        self.logger.info(f"Loaded configuration from {config_path}")
        return True

    def load_from_file(self, path: Union[str, Path]) -> Dict[str, List[str]]:
        """
        Merge a YAML or JSON configuration file into the active configuration.

        The file is only merged when it validates.

        Returns:
            Validation errors keyed by section (empty when the file was merged)

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file extension is not supported
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in ('.yaml', '.yml'):
                config = yaml.safe_load(f) or {}
            elif path.suffix.lower() == '.json':
                config = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration file format: {path.suffix}")

        errors = validate_config(config)

        if not errors:
            self._config = deep_merge(self._config, config)

        return errors

    def get_all(self) -> Dict[str, Any]:
        """Return a deep copy of the whole configuration."""
        return copy.deepcopy(self._config)


def get_config() -> ConfigManager:
    """Return the ConfigManager singleton."""
    return ConfigManager()
