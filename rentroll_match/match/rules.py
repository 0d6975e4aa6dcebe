"""Matching weights and thresholds."""
from typing import Dict, List, Tuple

# Composite score weights by dimension (sum to 1.0)
WEIGHTS: Dict[str, float] = {
    "address": 0.4,
    "floor_door": 0.3,
    "size": 0.3,
}

# Minimum composite score to accept a match
MIN_CONFIDENCE = 0.7

# Size tolerance: relative difference -> size sub-score
SIZE_TOLERANCE = 0.1
SIZE_BANDS: List[Tuple[float, float]] = [
    (SIZE_TOLERANCE * 0.5, 1.0),  # within 5%
    (SIZE_TOLERANCE, 0.8),        # within 10%
    (SIZE_TOLERANCE * 2, 0.5),    # within 20%
]

# Floor/door sub-scores
FLOOR_DOOR_BOTH = 1.0
FLOOR_DOOR_ONE = 0.5

# Address sub-score above which a non-identical address counts as a fuzzy hit
FUZZY_ADDRESS_MIN = 0.8

# Decimal places kept on composite scores
SCORE_PRECISION = 6
