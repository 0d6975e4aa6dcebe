"""Greedy one-to-one matching of extracted units against stored units."""
import logging
from typing import List, Optional, Sequence, Set

from rentroll_match.match.models import CandidateUnit, CanonicalUnit, MatchResult, UnitMatch
from rentroll_match.match.reasons import compose_reasons
from rentroll_match.match.rules import MIN_CONFIDENCE
from rentroll_match.match.scorer import MatchScore, calculate_match_score

logger = logging.getLogger(__name__)


def candidate_pool(
    candidate: CandidateUnit,
    canonical_units: Sequence[CanonicalUnit],
    consumed_ids: Set[int]
) -> List[CanonicalUnit]:
    """
    Stored units a candidate may be compared against.

    Units consumed earlier in the run are excluded. When the candidate has a
    postal code the pool is narrowed to units with the same code, unless that
    would leave nothing, in which case the full remaining pool is kept.
    """
    pool = [unit for unit in canonical_units if unit.unit_id not in consumed_ids]

    if candidate.postal_code:
        same_postal = [unit for unit in pool if unit.postal_code == candidate.postal_code]
        if same_postal:
            pool = same_postal

    return pool


def best_scoring_unit(candidate: CandidateUnit, pool: Sequence[CanonicalUnit]) -> Optional[MatchScore]:
    """Highest scoring unit in the pool; ties go to the unit listed first."""
    best: Optional[MatchScore] = None
    for unit in pool:
        scored = calculate_match_score(candidate, unit)
        if best is None or scored.score > best.score:
            best = scored
    return best


def score_candidate(
    candidate: CandidateUnit,
    canonical_units: Sequence[CanonicalUnit],
    consumed_ids: Set[int]
) -> Optional[MatchScore]:
    """Best scoring unit left for a candidate, or None when its pool is empty."""
    return best_scoring_unit(candidate, candidate_pool(candidate, canonical_units, consumed_ids))


def is_accepted(best: Optional[MatchScore], min_confidence: float) -> bool:
    return best is not None and best.score >= min_confidence


def find_best_match(
    candidate: CandidateUnit,
    canonical_units: Sequence[CanonicalUnit],
    consumed_ids: Set[int],
    min_confidence: float = MIN_CONFIDENCE
) -> Optional[MatchScore]:
    """
    Find the stored unit a candidate should be matched to.

    Args:
        candidate: Extracted unit
        canonical_units: All stored units for the property
        consumed_ids: unit_ids already assigned earlier in the run
        min_confidence: Minimum composite score to accept

    Returns:
        The accepted MatchScore, or None if the pool is empty or the best
        score is below min_confidence
    """
    best = score_candidate(candidate, canonical_units, consumed_ids)
    return best if is_accepted(best, min_confidence) else None


def match_units(
    candidates: Sequence[CandidateUnit],
    canonical_units: Sequence[CanonicalUnit],
    min_confidence: float = MIN_CONFIDENCE
) -> MatchResult:
    """
    Match extracted units against stored units for one property.

    Candidates are processed in input order and each accepted match consumes
    its stored unit, so a stored unit is assigned to at most one candidate.
    The assignment is greedy and not globally optimal: an early candidate can
    take a unit that would have scored higher for a later one.

    Args:
        candidates: Units extracted from the document
        canonical_units: Stored units, already scoped to the property
        min_confidence: Minimum composite score to accept a match

    Returns:
        MatchResult with matched pairs and unmatched candidates (anomalies)
    """
    if not candidates:
        return MatchResult(min_confidence=min_confidence)

    consumed_ids: Set[int] = set()
    matches: List[UnitMatch] = []
    unmatched_units: List[CandidateUnit] = []
    anomaly_reasons: List[str] = []

    for index, candidate in enumerate(candidates):
        best = score_candidate(candidate, canonical_units, consumed_ids)

        if is_accepted(best, min_confidence):
            consumed_ids.add(best.unit.unit_id)
            matches.append(
                UnitMatch(
                    candidate_index=index,
                    unit_id=best.unit.unit_id,
                    confidence=best.score,
                    method=best.method,
                    address_score=best.address_score,
                    floor_door_score=best.floor_door_score,
                    size_score=best.size_score,
                    reason_codes=best.reason_codes,
                )
            )
            logger.debug(f"Candidate {index} matched unit {best.unit.unit_id} ({best.method}, {best.score:.3f})")
            continue

        if best is None:
            reason = compose_reasons(["NO_CANDIDATES"])
        else:
            reason = compose_reasons(["BELOW_THRESHOLD"] + best.reason_codes, best.score)
        unmatched_units.append(candidate)
        anomaly_reasons.append(reason)
        logger.debug(f"Candidate {index} unmatched: {reason}")

    logger.info(
        f"Matched {len(matches)} of {len(candidates)} extracted units "
        f"against {len(canonical_units)} stored units ({len(unmatched_units)} anomalies)"
    )

    return MatchResult(
        matched_count=len(matches),
        total_extracted=len(candidates),
        unmatched_units=unmatched_units,
        has_anomalies=len(unmatched_units) > 0,
        matches=matches,
        min_confidence=min_confidence,
        anomaly_reasons=anomaly_reasons,
    )
