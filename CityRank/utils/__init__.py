"""
Utility helpers shared by the CityRank CLI and API layers.
"""

import json
import math
import time
from typing import Any, Optional

from CityRank.utils.logging import get_logger

logger = get_logger(__name__)


def format_json(data: Any, indent: int = 2, sort_keys: bool = False) -> str:
    """
    Format data as a JSON string, keeping non-ASCII city names readable.

    Values that are not JSON serializable are converted with ``str``.
    """
    return json.dumps(data, indent=indent, ensure_ascii=False, sort_keys=sort_keys, default=str)


def elapsed_ms(start_time: float) -> str:
    """
    Format the time elapsed since ``start_time`` (a ``time.perf_counter()``
    value) the way timing fields are reported in API responses, e.g. ``"3.21ms"``.
    """
    return f"{(time.perf_counter() - start_time) * 1000:.2f}ms"


def finite_or_zero(value: Optional[float]) -> float:
    """Coerce ``None``, NaN and infinities to 0.0."""
    if value is None:
        return 0.0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value
