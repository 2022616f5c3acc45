"""
City service module for the CityRank package.

This module wires storage, ranking, geolocation and the filter caches
together and exposes the operations used by both the CLI and API layers.
"""

from typing import Any, Dict, List, Optional, Tuple

from CityRank.cache import TTLCache
from CityRank.config.manager import ConfigManager, get_config
from CityRank.data import CityDataImporter, CityRepository, DatabaseManager, RegionRepository, SchemaManager
from CityRank.geolocation import GeolocationResolver
from CityRank.models import Location, SearchFilters
from CityRank.scoring.text import get_text_scorer
from CityRank.services.filters import FilterService
from CityRank.services.ranking import CompositeRanker, ScoringWeights, SearchPage
from CityRank.utils.logging import get_logger

# Get a logger for this module
logger = get_logger(__name__)


class CityService:
    """
    Service class for city search operations.

    Args:
        db_uri: Database URI to connect to. If None, taken from the configuration.
        config: Configuration manager. If None, uses the global instance.
        resolver: Geolocation resolver. If None, built from the configuration.
    """

    def __init__(self, db_uri: Optional[str] = None,
                 config: Optional[ConfigManager] = None,
                 resolver: Optional[GeolocationResolver] = None) -> None:
        self.config = config or get_config()
        self.db_uri = db_uri or self.config.get_database_uri()

        self.db_manager = DatabaseManager(
            self.db_uri,
            connection_timeout=self.config.get("database.timeout", 30)
        )
        self.schema_manager = SchemaManager(self.db_manager)
        self.schema_manager.ensure_schema_exists()

        self.importer = CityDataImporter(self.db_manager)
        self.city_repository = CityRepository(self.db_manager)
        self.region_repository = RegionRepository(self.db_manager)

        self.ranker = self._build_ranker()
        self.resolver = resolver or self._build_resolver()
        self.geolocation_enabled = self.config.get("geolocation.enabled", True)

        self.filter_service = FilterService(
            self.region_repository,
            filters_cache=TTLCache(self.config.get("cache.filters_ttl", 86400), name='filters'),
            states_cache=TTLCache(self.config.get("cache.states_ttl", 86400), name='states'),
        )

        logger.debug(f"CityService initialized with {self.db_manager.db_type} storage")

    def __enter__(self) -> 'CityService':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _build_ranker(self) -> CompositeRanker:
        limits = self.config.get_search_limits()
        candidates = self.config.get_candidate_settings()
        return CompositeRanker(
            self.city_repository,
            text_scorer=get_text_scorer(self.config.get("search.text_scorer", "levenshtein")),
            weights=ScoringWeights.from_dict(self.config.get_scoring_weights()),
            max_population=self.config.get("search.population.reference_max"),
            max_distance_km=self.config.get("search.proximity.max_distance_km", 1000),
            neutral_proximity=self.config.get("search.proximity.neutral_score", 0.5),
            candidate_window=candidates["window"],
            default_limit=limits["default"],
            max_limit=limits["max"],
            prefilter=self.config.get("search.prefilter", "substring"),
            trigram_threshold=self.config.get("search.trigram_threshold", 0.3),
        )

    def _build_resolver(self) -> GeolocationResolver:
        settings = self.config.get_geolocation_settings()
        return GeolocationResolver(
            url_template=settings["url"],
            timeout=settings["timeout"],
            default_location=Location(lat=settings["default_lat"], lon=settings["default_lon"]),
            cache=TTLCache(settings["cache_ttl"], name='geolocation'),
        )

    def resolve_location(self, client_ip: Optional[str]) -> Location:
        """Client location; the default location when geolocation is disabled."""
        if not self.geolocation_enabled:
            return self.resolver.default_location
        return self.resolver.resolve(client_ip)

    def search_cities(self, query: Optional[str], offset: Any = 0, limit: Any = None,
                      country_code: Optional[str] = None, state_code: Optional[str] = None,
                      client_ip: Optional[str] = None,
                      use_location: bool = False) -> Tuple[SearchPage, Optional[Location]]:
        """
        Search for cities and rank them.

        Args:
            query: Search text
            offset: Number of ranked results to skip
            limit: Page size (default and maximum come from the configuration)
            country_code: Optional exact country filter
            state_code: Optional exact state filter
            client_ip: Client address, used when ``use_location`` is set
            use_location: Whether to blend in proximity to the client

        Returns:
            Tuple of (page of results, client location used or None)
        """
        location = self.resolve_location(client_ip) if use_location else None
        filters = SearchFilters.build(country_code, state_code)

        logger.debug(f"Searching cities with query: {query}, offset: {offset}, limit: {limit}, "
                     f"filters: {filters}, location: {location}")

        page = self.ranker.search(query, location=location, filters=filters, offset=offset, limit=limit)
        return page, location

    def get_filters(self) -> Tuple[Dict[str, Any], bool]:
        """Country and state lists, plus whether they came from the cache."""
        return self.filter_service.get_filters()

    def get_states_for_country(self, country_code: str) -> Tuple[List[Dict[str, str]], bool]:
        """States of one country, plus whether they came from the cache."""
        return self.filter_service.get_states_for_country(country_code)

    def import_city_data(self, path: str, sep: Optional[str] = None,
                         batch_size: Optional[int] = None) -> int:
        """
        Import a city export file and reset the filter caches.

        Returns:
            Number of records imported
        """
        count = self.importer.import_file(
            path,
            sep=sep or self.config.get("data.separator", "\t"),
            batch_size=batch_size or self.config.get("data.batch_size", 5000),
        )
        self.filter_service.clear()
        return count

    def get_table_info(self) -> Dict[str, Any]:
        return self.schema_manager.get_table_info()

    def cache_stats(self) -> Dict[str, Any]:
        return {
            'geolocation': self.resolver.cache.stats(),
            'filters': self.filter_service.filters_cache.stats(),
            'states': self.filter_service.states_cache.stats(),
        }

    def close(self) -> None:
        """Close database connections."""
        self.db_manager.close()
