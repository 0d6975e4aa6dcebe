"""Unit records and matching results."""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rentroll_match.match.rules import MIN_CONFIDENCE

MatchMethod = Literal["exact", "fuzzy", "composite"]


class _Record(BaseModel):
    # Serialise with camelCase keys (matchedCount, sizeSqm, ...) for reporting consumers
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CandidateUnit(_Record):
    """
    Rental unit extracted from an uploaded document.

    Any field may be missing. The record has no identity beyond its position
    in the extracted list and is never modified after extraction.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    address: Optional[str] = None
    postal_code: Optional[str] = None
    door: Optional[int] = None
    floor: Optional[int] = None
    size_sqm: Optional[float] = None
    current_rent: Optional[float] = None
    tenant_name: Optional[str] = None
    lease_start: Optional[str] = None
    lease_end: Optional[str] = None


class CanonicalUnit(_Record):
    """Rental unit as stored in the system of record. unit_id is unique."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    unit_id: int
    property_id: Optional[str] = None
    address: Optional[str] = None
    postal_code: Optional[str] = None
    door: Optional[int] = None
    floor: Optional[int] = None
    size_sqm: Optional[float] = None

    # Tenancy fields, not used for matching
    property_name: Optional[str] = None
    current_rent: Optional[float] = None
    tenant_name: Optional[str] = None


class UnitMatch(_Record):
    """One accepted candidate/canonical pair."""
    candidate_index: int
    unit_id: int
    confidence: float
    method: MatchMethod
    address_score: float
    floor_door_score: float
    size_score: float
    reason_codes: List[str] = Field(default_factory=list)


class MatchResult(_Record):
    """
    Outcome of one matching run.

    matched_count + len(unmatched_units) == total_extracted, and no unit_id
    appears twice in matches.
    """
    matched_count: int = 0
    total_extracted: int = 0
    unmatched_units: List[CandidateUnit] = Field(default_factory=list)
    has_anomalies: bool = False
    matches: List[UnitMatch] = Field(default_factory=list)
    # Parallel to unmatched_units
    anomaly_reasons: List[str] = Field(default_factory=list)
    min_confidence: float = MIN_CONFIDENCE


class MatchingStats(_Record):
    total_pdf_units: int
    total_db_units: int
    matched: int
    missing: int
    extra: int
    avg_confidence: float
    processed_at: str
