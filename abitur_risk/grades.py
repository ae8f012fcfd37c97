"""Score statistics shared by the detectors."""

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

import numpy as np


def mean(values: Sequence[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty sequence."""
    if len(values) == 0:
        return None
    return float(np.mean(values))


def population_std(values: Sequence[float]) -> float:
    """
    Population standard deviation (ddof=0).

    The four semesters are the whole population, not a sample.
    Fewer than two values gives 0.0.
    """
    if len(values) < 2:
        return 0.0
    return float(np.std(values))


def is_strictly_declining(values: Sequence[float]) -> bool:
    """True for three or more values where each is below the previous one."""
    if len(values) < 3:
        return False
    return bool(np.all(np.diff(values) < 0))


def count_below(values: Sequence[Optional[int]], threshold: float) -> int:
    """Known values strictly below the threshold."""
    return sum(1 for v in values if v is not None and v < threshold)


def unknown_slots(values: Sequence[Optional[int]]) -> int:
    return sum(1 for v in values if v is None)


def known(values: Sequence[Optional[int]]) -> List[int]:
    return [v for v in values if v is not None]


def round_half_up(value: float, digits: int = 0):
    """
    Round with halves away from zero, the way report numbers are shown.

    Args:
        value: number to round
        digits: decimal places to keep

    Returns:
        int when digits is 0, otherwise float
    """
    exponent = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def fixed(value: float, digits: int) -> str:
    """Format with a fixed number of decimals, rounding halves up."""
    return f"{round_half_up(value, digits):.{digits}f}"
