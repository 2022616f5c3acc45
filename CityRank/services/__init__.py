"""
Service layer for the CityRank package.

This module provides the ranking engine, the filter caches and the CityService
facade used by both the CLI and API layers.
"""

from CityRank.services.city_service import CityService
from CityRank.services.filters import FilterService
from CityRank.services.ranking import CompositeRanker, ScoredCandidate, ScoringWeights, SearchPage

__all__ = ['CityService', 'FilterService', 'CompositeRanker', 'ScoredCandidate', 'ScoringWeights', 'SearchPage']
