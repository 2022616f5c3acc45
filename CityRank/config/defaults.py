"""
Default configuration values for CityRank.

These values are used when no configuration file is found and act as the base
that configuration files and environment variables are merged onto.
"""

from typing import Dict, Any

ONE_DAY_SECONDS = 24 * 60 * 60

DATABASE_DEFAULTS: Dict[str, Any] = {
    # Database backend: 'sqlite' (default) or 'postgresql'
    "type": "sqlite",
    "sqlite": {
        # Path to the SQLite database file (null = ~/.cityrank/data/cities.db)
        "path": None
    },
    "postgresql": {
        "host": "localhost",
        "port": 5432,
        "database": "cities_db",
        "user": "postgres",
        "password": "postgres"
    },
    # Seconds to wait when connecting
    "timeout": 30
}

SEARCH_DEFAULTS: Dict[str, Any] = {
    # Blend of the three factors; must be non-negative
    "weights": {
        "population": 0.2,
        "text": 0.7,
        "distance": 0.1
    },
    # Text scoring strategy: 'levenshtein' or 'trigram'
    "text_scorer": "levenshtein",
    # Storage pre-filter: 'substring' or 'trigram' (substring OR trigram similarity)
    "prefilter": "substring",
    "trigram_threshold": 0.3,
    "population": {
        # Population that maps to a score of 1.0 (null = scan the dataset maximum)
        "reference_max": 10000000
    },
    "proximity": {
        # Distance at which the proximity score reaches zero
        "max_distance_km": 1000,
        # Proximity score used when the client location is unknown
        "neutral_score": 0.5
    },
    "candidates": {
        # Most populous matches ranked per request; every page is a slice of them
        "window": 5000
    },
    "limits": {
        "default": 10,
        "max": 100
    }
}

GEOLOCATION_DEFAULTS: Dict[str, Any] = {
    "enabled": True,
    # {ip} is replaced with the client address
    "url": "http://ip-api.com/json/{ip}",
    # Seconds before an upstream lookup counts as failed
    "timeout": 3.0,
    # Used for local addresses and whenever the upstream lookup fails (Lille, France)
    "default_location": {
        "lat": 50.6333,
        "lon": 3.0667
    },
    "cache_ttl": ONE_DAY_SECONDS
}

CACHE_DEFAULTS: Dict[str, Any] = {
    "filters_ttl": ONE_DAY_SECONDS,
    "states_ttl": ONE_DAY_SECONDS
}

LOGGING_DEFAULTS: Dict[str, Any] = {
    "level": "info",
    # 'json' or 'text'
    "format": "text",
    "file": None
}

API_DEFAULTS: Dict[str, Any] = {
    "host": "0.0.0.0",
    "port": 3000,
    "debug": False
}

DATA_DEFAULTS: Dict[str, Any] = {
    # Field separator of the city data export
    "separator": "\t",
    "batch_size": 5000
}

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "database": DATABASE_DEFAULTS,
    "search": SEARCH_DEFAULTS,
    "geolocation": GEOLOCATION_DEFAULTS,
    "cache": CACHE_DEFAULTS,
    "logging": LOGGING_DEFAULTS,
    "api": API_DEFAULTS,
    "data": DATA_DEFAULTS
}
