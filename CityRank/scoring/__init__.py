"""
Scoring functions combined by the composite ranker.
"""

from CityRank.scoring.text import (
    TextScorer, LevenshteinTextScorer, TrigramTextScorer,
    levenshtein_distance, trigram_similarity, get_text_scorer
)
from CityRank.scoring.population import normalize_population
from CityRank.scoring.geo import distance_km, proximity_score, NEUTRAL_PROXIMITY

__all__ = [
    'TextScorer', 'LevenshteinTextScorer', 'TrigramTextScorer',
    'levenshtein_distance', 'trigram_similarity', 'get_text_scorer',
    'normalize_population', 'distance_km', 'proximity_score', 'NEUTRAL_PROXIMITY'
]
