"""Candidate/canonical unit scoring module."""
import math
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, List, Optional, Tuple

from rentroll_match.match.models import CandidateUnit, CanonicalUnit
from rentroll_match.match.rules import (
    FLOOR_DOOR_BOTH,
    FLOOR_DOOR_ONE,
    FUZZY_ADDRESS_MIN,
    SCORE_PRECISION,
    SIZE_BANDS,
    WEIGHTS,
)
from rentroll_match.utils.addresses import normalize_address
from rentroll_match.utils.fuzzy import string_similarity


@dataclass(frozen=True)
class MatchScore:
    """Composite score of one candidate/canonical pair with its parts."""
    unit: CanonicalUnit
    score: float
    method: str
    address_score: float
    floor_door_score: float
    size_score: float
    reason_codes: List[str] = field(default_factory=list)


@lru_cache(maxsize=4096)
def normalized_key(address: str) -> str:
    """Canonical address string, cached since stored addresses repeat per candidate."""
    return normalize_address(address).normalized


def positive_number(value: Any) -> Optional[float]:
    """Return value as a float if it is a positive finite number, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number) or number <= 0:
        return None
    return number


def score_address(candidate_address: Optional[str], canonical_address: Optional[str]) -> Tuple[float, str]:
    """
    Address sub-score.

    Returns:
        Tuple of (score, reason_code). 1.0 when both normalize to the same
        canonical string, otherwise their Levenshtein similarity; 0 when
        either side has no address.
    """
    if not isinstance(candidate_address, str) or not isinstance(canonical_address, str):
        return 0.0, "ADDR_MISSING"
    if not candidate_address.strip() or not canonical_address.strip():
        return 0.0, "ADDR_MISSING"

    candidate_key = normalized_key(candidate_address)
    canonical_key = normalized_key(canonical_address)

    if candidate_key == canonical_key:
        return 1.0, "ADDR_EXACT"

    similarity = string_similarity(candidate_key, canonical_key)
    return similarity, "ADDR_FUZZY" if similarity > FUZZY_ADDRESS_MIN else "ADDR_WEAK"


def score_floor_door(candidate: CandidateUnit, canonical: CanonicalUnit) -> Tuple[float, str]:
    """
    Floor/door sub-score: 1.0 if both match, 0.5 if one does, else 0.

    A field missing on the candidate never counts as a match.
    """
    floor_match = candidate.floor is not None and candidate.floor == canonical.floor
    door_match = candidate.door is not None and candidate.door == canonical.door

    if floor_match and door_match:
        return FLOOR_DOOR_BOTH, "FLOOR_DOOR"
    if floor_match:
        return FLOOR_DOOR_ONE, "FLOOR_ONLY"
    if door_match:
        return FLOOR_DOOR_ONE, "DOOR_ONLY"
    return 0.0, "FLOOR_DOOR_MISMATCH"


def score_size(candidate_size: Any, canonical_size: Any) -> Tuple[float, str]:
    """
    Size sub-score from the relative size difference.

    Only evaluated when both sizes are positive numbers.
    """
    candidate_sqm = positive_number(candidate_size)
    canonical_sqm = positive_number(canonical_size)
    if candidate_sqm is None or canonical_sqm is None:
        return 0.0, "SIZE_MISSING"

    size_diff = abs(candidate_sqm - canonical_sqm) / max(candidate_sqm, canonical_sqm, 1)

    for (tolerance, band_score), code in zip(SIZE_BANDS, ("SIZE_5", "SIZE_10", "SIZE_20")):
        if size_diff <= tolerance:
            return band_score, code
    return 0.0, "SIZE_MISMATCH"


def classify_method(address_score: float, floor_door_score: float) -> str:
    if address_score == 1.0 and floor_door_score == 1.0:
        return "exact"
    if FUZZY_ADDRESS_MIN < address_score < 1.0:
        return "fuzzy"
    return "composite"


def calculate_match_score(candidate: CandidateUnit, canonical: CanonicalUnit) -> MatchScore:
    """
    Calculate the composite match score for a candidate/canonical pair.

    Missing dimensions contribute 0; scores are not renormalised over the
    dimensions that happen to be available.

    Args:
        candidate: Unit extracted from the document
        canonical: Stored unit

    Returns:
        MatchScore with composite score in [0, 1], sub-scores, method and
        reason codes
    """
    address_score, address_code = score_address(candidate.address, canonical.address)
    floor_door_score, floor_door_code = score_floor_door(candidate, canonical)
    size_score, size_code = score_size(candidate.size_sqm, canonical.size_sqm)

    composite = (
        address_score * WEIGHTS["address"]
        + floor_door_score * WEIGHTS["floor_door"]
        + size_score * WEIGHTS["size"]
    )

    return MatchScore(
        unit=canonical,
        score=round(composite, SCORE_PRECISION),
        method=classify_method(address_score, floor_door_score),
        address_score=address_score,
        floor_door_score=floor_door_score,
        size_score=size_score,
        reason_codes=[address_code, floor_door_code, size_code],
    )
