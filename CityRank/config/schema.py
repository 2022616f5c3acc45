"""
Validation rules for CityRank configuration dictionaries.

Each ``validate_*`` function checks one section and returns a list of error
messages. Sections missing from a configuration file are not errors, since
files are merged onto the defaults.
"""

from typing import Any, Dict, List

VALID_DATABASE_TYPES = ("sqlite", "postgresql")
VALID_LOGGING_LEVELS = ("debug", "info", "warning", "error", "critical")
VALID_LOGGING_FORMATS = ("json", "text")
VALID_TEXT_SCORERS = ("levenshtein", "trigram")
VALID_PREFILTERS = ("substring", "trigram")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def is_valid_port(port: Any) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


def validate_database_config(db_config: Dict[str, Any]) -> List[str]:
    """Validate the ``database`` section."""
    errors = []

    if "type" in db_config and db_config["type"] not in VALID_DATABASE_TYPES:
        errors.append(f"Invalid database type: {db_config['type']}. Must be one of: {', '.join(VALID_DATABASE_TYPES)}")

    pg_config = db_config.get("postgresql")
    if isinstance(pg_config, dict) and "port" in pg_config and not is_valid_port(pg_config["port"]):
        errors.append(f"PostgreSQL port must be between 1 and 65535, got {pg_config['port']}")

    if "timeout" in db_config and not _is_positive_int(db_config["timeout"]):
        errors.append(f"Database timeout must be a positive integer, got {db_config['timeout']}")

    return errors


def validate_search_config(search_config: Dict[str, Any]) -> List[str]:
    """Validate the ``search`` section."""
    errors = []

    weights = search_config.get("weights")
    if weights is not None:
        if not isinstance(weights, dict):
            errors.append("Search weights must be a mapping")
        else:
            for factor in ("population", "text", "distance"):
                if factor in weights and (not _is_number(weights[factor]) or weights[factor] < 0):
                    errors.append(f"Weight '{factor}' must be a non-negative number, got {weights[factor]}")

    if "text_scorer" in search_config and search_config["text_scorer"] not in VALID_TEXT_SCORERS:
        errors.append(f"Invalid text scorer: {search_config['text_scorer']}. Must be one of: {', '.join(VALID_TEXT_SCORERS)}")

    if "prefilter" in search_config and search_config["prefilter"] not in VALID_PREFILTERS:
        errors.append(f"Invalid prefilter: {search_config['prefilter']}. Must be one of: {', '.join(VALID_PREFILTERS)}")

    if "trigram_threshold" in search_config:
        threshold = search_config["trigram_threshold"]
        if not _is_number(threshold) or not 0 <= threshold <= 1:
            errors.append(f"Trigram threshold must be between 0 and 1, got {threshold}")

    population = search_config.get("population")
    if isinstance(population, dict) and population.get("reference_max") is not None:
        reference_max = population["reference_max"]
        if not _is_number(reference_max) or reference_max <= 1:
            errors.append(f"Population reference_max must be a number greater than 1, got {reference_max}")

    proximity = search_config.get("proximity")
    if isinstance(proximity, dict):
        if "max_distance_km" in proximity and (not _is_number(proximity["max_distance_km"]) or proximity["max_distance_km"] <= 0):
            errors.append(f"Proximity max_distance_km must be positive, got {proximity['max_distance_km']}")
        if "neutral_score" in proximity:
            neutral = proximity["neutral_score"]
            if not _is_number(neutral) or not 0 <= neutral <= 1:
                errors.append(f"Proximity neutral_score must be between 0 and 1, got {neutral}")

    candidates = search_config.get("candidates")
    if isinstance(candidates, dict):
        if "window" in candidates and not _is_positive_int(candidates["window"]):
            errors.append(f"Candidate window must be a positive integer, got {candidates['window']}")

    limits = search_config.get("limits")
    if isinstance(limits, dict):
        for key in ("default", "max"):
            if key in limits and not _is_positive_int(limits[key]):
                errors.append(f"Limit '{key}' must be a positive integer, got {limits[key]}")
        if _is_positive_int(limits.get("default")) and _is_positive_int(limits.get("max")):
            if limits["default"] > limits["max"]:
                errors.append(f"Default limit ({limits['default']}) cannot exceed maximum limit ({limits['max']})")

    return errors


def validate_geolocation_config(geo_config: Dict[str, Any]) -> List[str]:
    """Validate the ``geolocation`` section."""
    errors = []

    if "enabled" in geo_config and not isinstance(geo_config["enabled"], bool):
        errors.append("Geolocation enabled flag must be a boolean")

    if "url" in geo_config:
        url = geo_config["url"]
        if not isinstance(url, str) or not url.startswith(("http://", "https://")) or "{ip}" not in url:
            errors.append(f"Geolocation url must be an http(s) URL containing '{{ip}}', got {url}")

    if "timeout" in geo_config and (not _is_number(geo_config["timeout"]) or geo_config["timeout"] <= 0):
        errors.append(f"Geolocation timeout must be a positive number, got {geo_config['timeout']}")

    if "cache_ttl" in geo_config and not _is_positive_int(geo_config["cache_ttl"]):
        errors.append(f"Geolocation cache_ttl must be a positive integer, got {geo_config['cache_ttl']}")

    default_location = geo_config.get("default_location")
    if default_location is not None:
        if not isinstance(default_location, dict):
            errors.append("Geolocation default_location must be a mapping with lat and lon")
        else:
            lat = default_location.get("lat")
            lon = default_location.get("lon")
            if not _is_number(lat) or not -90 <= lat <= 90:
                errors.append(f"Default location lat must be between -90 and 90, got {lat}")
            if not _is_number(lon) or not -180 <= lon <= 180:
                errors.append(f"Default location lon must be between -180 and 180, got {lon}")

    return errors


def validate_cache_config(cache_config: Dict[str, Any]) -> List[str]:
    """Validate the ``cache`` section."""
    errors = []
    for key in ("filters_ttl", "states_ttl"):
        if key in cache_config and not _is_positive_int(cache_config[key]):
            errors.append(f"Cache {key} must be a positive integer, got {cache_config[key]}")
    return errors


def validate_logging_config(logging_config: Dict[str, Any]) -> List[str]:
    """Validate the ``logging`` section."""
    errors = []

    level = logging_config.get("level")
    if level is not None and (not isinstance(level, str) or level.lower() not in VALID_LOGGING_LEVELS):
        errors.append(f"Invalid logging level: {level}. Must be one of: {', '.join(VALID_LOGGING_LEVELS)}")

    fmt = logging_config.get("format")
    if fmt is not None and fmt not in VALID_LOGGING_FORMATS:
        errors.append(f"Invalid logging format: {fmt}. Must be one of: {', '.join(VALID_LOGGING_FORMATS)}")

    return errors


def validate_api_config(api_config: Dict[str, Any]) -> List[str]:
    """Validate the ``api`` section."""
    errors = []

    if "port" in api_config and not is_valid_port(api_config["port"]):
        errors.append(f"API port must be between 1 and 65535, got {api_config['port']}")

    if "debug" in api_config and not isinstance(api_config["debug"], bool):
        errors.append("API debug flag must be a boolean")

    return errors


def validate_data_config(data_config: Dict[str, Any]) -> List[str]:
    """Validate the ``data`` section."""
    errors = []

    if "batch_size" in data_config and not _is_positive_int(data_config["batch_size"]):
        errors.append(f"Batch size must be a positive integer, got {data_config['batch_size']}")

    if "separator" in data_config and (not isinstance(data_config["separator"], str) or not data_config["separator"]):
        errors.append("Data separator must be a non-empty string")

    return errors


_SECTION_VALIDATORS = {
    "database": validate_database_config,
    "search": validate_search_config,
    "geolocation": validate_geolocation_config,
    "cache": validate_cache_config,
    "logging": validate_logging_config,
    "api": validate_api_config,
    "data": validate_data_config,
}


def validate_config(config: Any) -> Dict[str, List[str]]:
    """
    Validate a (possibly partial) configuration dictionary.

    Returns:
        Dictionary mapping section names to lists of error messages; empty
        when the configuration is valid
    """
    if not isinstance(config, dict):
        return {"config": ["Configuration must be a mapping"]}

    errors: Dict[str, List[str]] = {}

    for section, value in config.items():
        validator = _SECTION_VALIDATORS.get(section)
        if validator is None:
            errors.setdefault("config", []).append(f"Unknown configuration section: {section}")
            continue
        if not isinstance(value, dict):
            errors[section] = [f"Section '{section}' must be a mapping"]
            continue
        section_errors = validator(value)
        if section_errors:
            errors[section] = section_errors

    return errors
