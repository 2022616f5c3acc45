"""
CityRank configuration system.

Usage:
    from CityRank.config import get_config

    weights = get_config().get_scoring_weights()
    get_config().set("geolocation.enabled", False)
    get_config().load_config()
"""

from CityRank.config.manager import ConfigManager, get_config
from CityRank.config.schema import validate_config
from CityRank.config.utils import deep_merge

__all__ = ["ConfigManager", "get_config", "validate_config", "deep_merge"]
