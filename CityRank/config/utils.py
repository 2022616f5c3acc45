"""
Helper functions for the CityRank configuration system.
"""

from typing import Any, Dict


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge ``override`` onto ``base`` and return a new dictionary.

    Nested dictionaries are merged key by key; any other value, lists
    included, replaces the base value outright.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result
