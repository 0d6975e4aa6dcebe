"""Matching statistics and result aggregation."""
import logging
from datetime import datetime, timezone
from typing import List, Sequence

import pandas as pd

from rentroll_match.match.models import CandidateUnit, CanonicalUnit, MatchResult, MatchingStats
from rentroll_match.match.reasons import compose_reasons

logger = logging.getLogger(__name__)

CANDIDATE_COLUMNS = [
    "address", "postal_code", "floor", "door", "size_sqm",
    "current_rent", "tenant_name", "lease_start", "lease_end",
]
CANONICAL_COLUMNS = [
    "unit_id", "property_id", "property_name", "address", "postal_code",
    "floor", "door", "size_sqm", "current_rent", "tenant_name",
]


def extra_canonical_units(
    result: MatchResult,
    canonical_units: Sequence[CanonicalUnit]
) -> List[CanonicalUnit]:
    """Stored units that no extracted unit was matched to, in input order."""
    matched_ids = {match.unit_id for match in result.matches}
    return [unit for unit in canonical_units if unit.unit_id not in matched_ids]


def calculate_stats(result: MatchResult, canonical_units: Sequence[CanonicalUnit]) -> MatchingStats:
    """
    Summary statistics for a matching run.

    Args:
        result: Output of match_units
        canonical_units: The stored units the run was matched against

    Returns:
        MatchingStats with counts and mean confidence of accepted matches
    """
    confidences = [match.confidence for match in result.matches]
    avg_confidence = sum(confidences) / len(confidences) if confidences else 0.0

    return MatchingStats(
        total_pdf_units=result.total_extracted,
        total_db_units=len(canonical_units),
        matched=result.matched_count,
        missing=len(result.unmatched_units),
        extra=len(extra_canonical_units(result, canonical_units)),
        avg_confidence=round(avg_confidence, 4),
        processed_at=datetime.now(timezone.utc).isoformat(),
    )


def matches_frame(
    result: MatchResult,
    candidates: Sequence[CandidateUnit],
    canonical_units: Sequence[CanonicalUnit]
) -> pd.DataFrame:
    """
    One row per accepted match, candidate fields prefixed pdf_, stored fields db_.
    """
    units_by_id = {unit.unit_id: unit for unit in canonical_units}
    rows = []

    for match in result.matches:
        candidate = candidates[match.candidate_index].model_dump()
        unit = units_by_id[match.unit_id].model_dump()
        row = {f"pdf_{col}": candidate.get(col) for col in CANDIDATE_COLUMNS}
        row.update({f"db_{col}": unit.get(col) for col in CANONICAL_COLUMNS})
        row.update({
            "confidence": match.confidence,
            "method": match.method,
            "address_score": match.address_score,
            "floor_door_score": match.floor_door_score,
            "size_score": match.size_score,
            "reason_text": compose_reasons(match.reason_codes),
        })
        rows.append(row)

    columns = (
        [f"pdf_{col}" for col in CANDIDATE_COLUMNS]
        + [f"db_{col}" for col in CANONICAL_COLUMNS]
        + ["confidence", "method", "address_score", "floor_door_score", "size_score", "reason_text"]
    )
    return pd.DataFrame(rows, columns=columns)


def unmatched_frame(result: MatchResult) -> pd.DataFrame:
    """Anomalies (extracted units without a stored counterpart) with reasons."""
    rows = []
    for position, unit in enumerate(result.unmatched_units):
        row = {col: unit.model_dump().get(col) for col in CANDIDATE_COLUMNS}
        row["reason_text"] = result.anomaly_reasons[position] if position < len(result.anomaly_reasons) else ""
        rows.append(row)
    return pd.DataFrame(rows, columns=CANDIDATE_COLUMNS + ["reason_text"])


def units_frame(units: Sequence[CanonicalUnit]) -> pd.DataFrame:
    """Stored units as a DataFrame."""
    return pd.DataFrame([unit.model_dump() for unit in units], columns=CANONICAL_COLUMNS)


def stats_frame(stats: MatchingStats) -> pd.DataFrame:
    """Stats as metric/value rows."""
    return pd.DataFrame(
        [{"metric": key, "value": value} for key, value in stats.model_dump().items()]
    )


def compose_summary(stats: MatchingStats) -> str:
    """
    One-line summary of a matching run.

    Args:
        stats: Stats from calculate_stats

    Returns:
        Human-readable summary string
    """
    if stats.total_pdf_units == 0:
        return "No units extracted from document"

    parts = [
        f"{stats.matched} of {stats.total_pdf_units} extracted units matched",
        f"{stats.missing} not found in stored units",
        f"{stats.extra} stored units not in document",
    ]
    if stats.matched:
        parts.append(f"average confidence {stats.avg_confidence:.0%}")
    return "; ".join(parts)
