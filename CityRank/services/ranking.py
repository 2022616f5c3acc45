"""
Composite ranking of city candidates.

Each candidate gets a text, a population and a proximity score; the final
score is their weighted sum. Ordering happens in Python over a fixed window
of the most populous matches, and every page is a slice of that one ordering.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from CityRank.data.repositories import CityRepository, PREFILTER_SUBSTRING
from CityRank.exceptions import InvalidParameterError, QueryRequiredError
from CityRank.models import City, Location, SearchFilters
from CityRank.scoring.geo import NEUTRAL_PROXIMITY, distance_km, proximity_score
from CityRank.scoring.population import normalize_population
from CityRank.scoring.text import LevenshteinTextScorer, TextScorer
from CityRank.utils import finite_or_zero
from CityRank.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
CANDIDATE_WINDOW = 5000
REFERENCE_MAX_POPULATION = 10_000_000


@dataclass(frozen=True)
class ScoringWeights:
    """Weights of the population, text and distance factors."""

    population: float = 0.2
    text: float = 0.7
    distance: float = 0.1

    @classmethod
    def from_dict(cls, weights: Dict[str, float]) -> 'ScoringWeights':
        defaults = cls()
        return cls(
            population=float(weights.get('population', defaults.population)),
            text=float(weights.get('text', defaults.text)),
            distance=float(weights.get('distance', defaults.distance)),
        )


@dataclass(frozen=True)
class ScoredCandidate:
    """A city with its per-factor scores and the weighted final score."""

    city: City
    text_score: float
    population_score: float
    distance_score: float
    final_score: float
    distance_km: Optional[float] = None
    location: Optional[Location] = None

    def sort_key(self):
        population = self.city.population
        return (
            -self.final_score,
            population is None,
            -(population or 0),
            self.distance_km is None,
            self.distance_km or 0.0,
            self.city.geoname_id,
        )

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        """Response row; ``include_debug`` adds the per-factor breakdown."""
        row = self.city.to_dict()
        row['score'] = self.final_score
        if include_debug:
            row['debug'] = {
                'populationScore': self.population_score,
                'textMatchScore': self.text_score,
                'distanceScore': self.distance_score,
                'distance': round(self.distance_km, 2) if self.distance_km is not None else None,
                'userLocation': self.location.to_dict() if self.location else None,
                'useDistanceScoring': self.location is not None,
            }
        return row


@dataclass(frozen=True)
class SearchPage:
    """
    One page of ranked results.

    ``total`` counts every matching city; ``ranked`` is how many of them were
    ordered and can be paged through.
    """

    results: List[ScoredCandidate]
    total: int
    offset: int
    limit: int
    ranked: Optional[int] = None

    @property
    def has_more(self) -> bool:
        reachable = self.total if self.ranked is None else min(self.total, self.ranked)
        return self.offset + self.limit < reachable

    def pagination(self) -> Dict[str, Any]:
        return {
            'offset': self.offset,
            'limit': self.limit,
            'total': self.total,
            'hasMore': self.has_more,
        }


class CompositeRanker:
    """
    Ranks city candidates by text similarity, population and proximity.

    Args:
        city_repository: Source of candidates
        text_scorer: Text matching strategy; Levenshtein tiers by default
        weights: Factor weights
        max_population: Population that maps to a population score of 1.0;
            when None, the dataset maximum is read once from storage
        max_distance_km: Distance at which the proximity score reaches 0
        neutral_proximity: Proximity score used without a client location
        candidate_window: Number of most populous matches ranked per search
        default_limit: Page size when none is requested
        max_limit: Largest page size honoured
        prefilter: Storage pre-filter, ``substring`` or ``trigram``
        trigram_threshold: Minimum similarity for the trigram pre-filter
    """

    def __init__(self, city_repository: CityRepository,
                 text_scorer: Optional[TextScorer] = None,
                 weights: Optional[ScoringWeights] = None,
                 max_population: Optional[float] = REFERENCE_MAX_POPULATION,
                 max_distance_km: float = 1000,
                 neutral_proximity: float = NEUTRAL_PROXIMITY,
                 candidate_window: int = CANDIDATE_WINDOW,
                 default_limit: int = DEFAULT_LIMIT,
                 max_limit: int = MAX_LIMIT,
                 prefilter: str = PREFILTER_SUBSTRING,
                 trigram_threshold: float = 0.3) -> None:
        self.city_repository = city_repository
        self.text_scorer = text_scorer or LevenshteinTextScorer()
        self.weights = weights or ScoringWeights()
        self.max_distance_km = max_distance_km
        self.neutral_proximity = neutral_proximity
        self.candidate_window = candidate_window
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.prefilter = prefilter
        self.trigram_threshold = trigram_threshold

        self._max_population = max_population
        self._max_population_lock = threading.Lock()

    @property
    def max_population(self) -> float:
        if self._max_population is None:
            with self._max_population_lock:
                if self._max_population is None:
                    scanned = self.city_repository.get_max_population()
                    self._max_population = scanned or REFERENCE_MAX_POPULATION
                    logger.info(f"Using dataset maximum population {self._max_population} for normalization")
        return self._max_population

    def _validate_page(self, offset: Any, limit: Any):
        if offset is None:
            offset = 0
        if limit is None:
            limit = self.default_limit

        try:
            offset = int(offset)
            limit = int(limit)
        except (TypeError, ValueError):
            raise InvalidParameterError(
                message=f"offset and limit must be integers, got offset={offset!r} limit={limit!r}",
                user_message="offset and limit must be integers"
            )

        if offset < 0:
            raise InvalidParameterError(
                message=f"Negative offset: {offset}",
                user_message="offset must be zero or greater"
            )
        if limit <= 0:
            raise InvalidParameterError(
                message=f"Non-positive limit: {limit}",
                user_message="limit must be greater than zero"
            )

        return offset, min(limit, self.max_limit)

    def score(self, city: City, query: str, location: Optional[Location] = None) -> ScoredCandidate:
        """Score a single city against ``query`` and an optional client location."""
        text = finite_or_zero(self.text_scorer.score(city.city_name, query))
        population = finite_or_zero(normalize_population(city.population, self.max_population))

        distance = None
        if location is not None:
            distance = finite_or_zero(distance_km(location.lat, location.lon, city.latitude, city.longitude))
            proximity = finite_or_zero(proximity_score(distance, self.max_distance_km))
        else:
            proximity = self.neutral_proximity

        final = finite_or_zero(
            self.weights.population * population +
            self.weights.text * text +
            self.weights.distance * proximity
        )

        return ScoredCandidate(
            city=city,
            text_score=text,
            population_score=population,
            distance_score=proximity,
            final_score=final,
            distance_km=distance,
            location=location,
        )

    def search(self, query: Optional[str], location: Optional[Location] = None,
               filters: Optional[SearchFilters] = None, offset: Any = 0,
               limit: Any = None) -> SearchPage:
        """
        Rank the cities matching ``query`` and return one page.

        Raises:
            QueryRequiredError: If the query is missing or blank
            InvalidParameterError: If offset or limit is invalid
            StorageUnavailableError: If the candidate query fails
        """
        if query is None or not str(query).strip():
            raise QueryRequiredError(message="Search attempted without a query")

        query = str(query).strip()
        offset, limit = self._validate_page(offset, limit)

        candidates, total = self.city_repository.find_candidates(
            query,
            filters=filters,
            max_candidates=self.candidate_window,
            prefilter=self.prefilter,
            trigram_threshold=self.trigram_threshold,
        )

        scored = sorted(
            (self.score(city, query, location) for city in candidates),
            key=ScoredCandidate.sort_key
        )

        logger.debug(f"Ranked {len(scored)} of {total} candidates for '{query}' "
                     f"(window={self.candidate_window}, offset={offset}, limit={limit})")

        return SearchPage(
            results=scored[offset:offset + limit],
            total=total,
            offset=offset,
            limit=limit,
            ranked=len(scored),
        )
