"""
Logarithmic population normalization.
"""

import math
from typing import Optional


def normalize_population(population: Optional[float], max_population: float) -> float:
    """
    Map a population count onto [0, 1] with a log10 scale.

    Missing, zero and negative populations score 0. Populations above
    ``max_population`` are clamped to 1.

    Args:
        population: Raw population count, or None
        max_population: Reference population that maps to 1.0

    Returns:
        Normalized population score
    """
    if not population or population <= 0:
        return 0.0
    if not max_population or max_population <= 1:
        return 0.0

    score = math.log10(population) / math.log10(max_population)
    return min(1.0, max(0.0, score))
