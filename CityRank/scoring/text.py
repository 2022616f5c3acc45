"""
Text similarity scoring between a query and a city name.

Two strategies are available: the tiered Levenshtein scorer used by default,
and a trigram scorer that mirrors PostgreSQL's ``pg_trgm`` similarity.
"""

import re
from typing import Dict, Protocol, Set, Type

from rapidfuzz.distance import Levenshtein

from CityRank.exceptions import ConfigError

EXACT_MATCH_SCORE = 1.0
PREFIX_MATCH_SCORE = 0.95
WORD_MATCH_SCORE = 0.8
SUBSTRING_MATCH_SCORE = 0.6
FUZZY_BASE_SCORE = 0.4
FUZZY_RANGE = 0.2
WORD_PREFIX_SCORE = 0.5
WORD_FUZZY_SCORE = 0.4
NO_MATCH_SCORE = 0.2

_WORD_SPLIT = re.compile(r'[^\w]+', re.UNICODE)


class TextScorer(Protocol):
    """A text matching strategy: ``score`` returns a similarity in [0, 1]."""

    def score(self, candidate_name: str, query: str) -> float:
        ...


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost insert/delete/substitute edit distance."""
    return Levenshtein.distance(a, b)


def _fuzzy_threshold(text: str) -> int:
    return max(2, int(len(text) * 0.3))


def _trigrams(text: str) -> Set[str]:
    trigrams = set()
    for word in _WORD_SPLIT.split(text.lower()):
        if not word:
            continue
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            trigrams.add(padded[i:i + 3])
    return trigrams


def trigram_similarity(a: str, b: str) -> float:
    """
    Trigram similarity compatible with ``pg_trgm``'s ``similarity()``.

    Each word is lower-cased and padded with two leading blanks and one
    trailing blank; the score is the number of shared trigrams divided by
    the number of distinct trigrams in either string.
    """
    if a is None or b is None:
        return 0.0
    trigrams_a = _trigrams(a)
    trigrams_b = _trigrams(b)
    union = trigrams_a | trigrams_b
    if not union:
        return 0.0
    return len(trigrams_a & trigrams_b) / len(union)


class LevenshteinTextScorer:
    """
    Tiered scorer: exact, prefix, whole word, substring, fuzzy full string,
    then a per-word fallback. Never returns less than 0.2.
    """

    def score(self, candidate_name: str, query: str) -> float:
        candidate = (candidate_name or '').lower()
        query = (query or '').lower()

        if candidate == query:
            return EXACT_MATCH_SCORE

        if candidate.startswith(query):
            return PREFIX_MATCH_SCORE

        if (f" {query} " in candidate or
                candidate.startswith(f"{query} ") or
                candidate.endswith(f" {query}")):
            return WORD_MATCH_SCORE

        if query in candidate:
            return SUBSTRING_MATCH_SCORE

        distance = levenshtein_distance(candidate, query)
        if distance <= _fuzzy_threshold(query):
            similarity = 1 - distance / max(len(candidate), len(query))
            return FUZZY_BASE_SCORE + FUZZY_RANGE * similarity

        return self._score_words(candidate.split(), query.split())

    def _score_words(self, words, query_words) -> float:
        if any(word.startswith(query_word) for word in words for query_word in query_words):
            return WORD_PREFIX_SCORE

        for word in words:
            for query_word in query_words:
                if levenshtein_distance(word, query_word) <= _fuzzy_threshold(query_word):
                    return WORD_FUZZY_SCORE

        return NO_MATCH_SCORE


class TrigramTextScorer:
    """Scores with trigram similarity, as the database pre-filter does."""

    def score(self, candidate_name: str, query: str) -> float:
        return trigram_similarity(candidate_name or '', query or '')


_SCORERS: Dict[str, Type] = {
    'levenshtein': LevenshteinTextScorer,
    'trigram': TrigramTextScorer,
}


def get_text_scorer(name: str = 'levenshtein') -> TextScorer:
    """
    Build the text scorer registered under ``name``.

    Raises:
        ConfigError: If no scorer is registered under that name
    """
    try:
        return _SCORERS[name]()
    except KeyError:
        raise ConfigError(
            message=f"Unknown text scorer: {name}",
            context={"text_scorer": name, "available": sorted(_SCORERS)}
        )
