"""
Cached country and state lists for the filter endpoints.
"""

from typing import Any, Dict, List, Optional, Tuple

from CityRank.cache import TTLCache
from CityRank.data.repositories import RegionRepository
from CityRank.utils.logging import get_logger

logger = get_logger(__name__)

ONE_DAY_SECONDS = 24 * 60 * 60
_FILTERS_KEY = 'filters'


class FilterService:
    """
    Read-through caches over the distinct country and state lists.

    Both methods report whether the value came from the cache; the data is
    the same either way.
    """

    def __init__(self, region_repository: RegionRepository,
                 filters_cache: Optional[TTLCache] = None,
                 states_cache: Optional[TTLCache] = None) -> None:
        self.region_repository = region_repository
        self.filters_cache = filters_cache or TTLCache(ONE_DAY_SECONDS, name='filters')
        self.states_cache = states_cache or TTLCache(ONE_DAY_SECONDS, name='states')

    def get_filters(self) -> Tuple[Dict[str, Any], bool]:
        """
        Returns:
            Tuple of (``{countries: [{code}], states: {country: [{code, name}]}}``, cache hit)
        """
        cached = self.filters_cache.get(_FILTERS_KEY)
        if cached is not None:
            logger.debug("Serving filters from cache")
            return cached, True

        payload = {
            'countries': self.region_repository.get_countries(),
            'states': self.region_repository.get_states_by_country(),
        }
        self.filters_cache.put(_FILTERS_KEY, payload)
        logger.info(f"Loaded filters: {len(payload['countries'])} countries, "
                    f"{len(payload['states'])} countries with states")
        return payload, False

    def get_states_for_country(self, country_code: str) -> Tuple[List[Dict[str, str]], bool]:
        """
        Returns:
            Tuple of (``[{code, name}]`` for the country, cache hit)
        """
        key = (country_code or '').strip().upper()

        cached = self.states_cache.get(key)
        if cached is not None:
            logger.debug(f"Serving states for {key} from cache")
            return cached, True

        states = self.region_repository.get_states_for_country(key)
        self.states_cache.put(key, states)
        return states, False

    def clear(self) -> None:
        """Drop both caches, e.g. after a data import."""
        self.filters_cache.clear()
        self.states_cache.clear()
