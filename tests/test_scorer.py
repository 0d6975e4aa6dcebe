"""Unit tests for candidate/canonical scoring and reason text."""
import math

import pytest

from rentroll_match.match.models import CandidateUnit, CanonicalUnit
from rentroll_match.match.reasons import compose_reasons, format_reason_code
from rentroll_match.match.rules import WEIGHTS
from rentroll_match.match.scorer import (
    calculate_match_score,
    classify_method,
    positive_number,
    score_address,
    score_floor_door,
    score_size,
)


class TestWeights:
    """Test weight configuration."""

    def test_weights_sum_to_one(self):
        """Test composite weights sum to 1."""
        assert sum(WEIGHTS.values()) == pytest.approx(1.0)


class TestAddressScore:
    """Test address sub-score."""

    def test_same_after_normalization(self):
        """Test differently written but equivalent addresses score 1."""
        score, code = score_address("Vesterbrogade 123, 1620 København V", "vesterbrogade  123, 1620")
        assert score == 1.0
        assert code == "ADDR_EXACT"

    def test_similar(self):
        """Test near-identical addresses score by similarity."""
        score, code = score_address("Vesterbrogade 123, 1620", "Vesterbrogade 125, 1620")
        assert score == pytest.approx(1 - 1 / len("vesterbrogade 123, 1620"))
        assert code == "ADDR_FUZZY"

    def test_dissimilar(self):
        """Test unrelated addresses score low."""
        score, code = score_address("Vesterbrogade 123", "Amagerbrogade 9")
        assert score < 0.8
        assert code == "ADDR_WEAK"

    def test_missing(self):
        """Test missing address on either side scores 0."""
        assert score_address(None, "Vesterbrogade 123") == (0.0, "ADDR_MISSING")
        assert score_address("Vesterbrogade 123", "") == (0.0, "ADDR_MISSING")


class TestFloorDoorScore:
    """Test floor/door sub-score."""

    def test_both_match(self):
        """Test floor and door both equal."""
        score, code = score_floor_door(CandidateUnit(floor=2, door=3), CanonicalUnit(unit_id=1, floor=2, door=3))
        assert score == 1.0
        assert code == "FLOOR_DOOR"

    def test_one_match(self):
        """Test only one of floor or door equal."""
        assert score_floor_door(CandidateUnit(floor=2, door=1), CanonicalUnit(unit_id=1, floor=2, door=3))[0] == 0.5
        assert score_floor_door(CandidateUnit(floor=1, door=3), CanonicalUnit(unit_id=1, floor=2, door=3))[0] == 0.5

    def test_missing_never_matches(self):
        """Test missing candidate floor/door does not match a missing canonical value."""
        score, code = score_floor_door(CandidateUnit(), CanonicalUnit(unit_id=1))
        assert score == 0.0
        assert code == "FLOOR_DOOR_MISMATCH"

    def test_ground_floor_zero_matches(self):
        """Test floor 0 is a real value."""
        score, _ = score_floor_door(CandidateUnit(floor=0, door=1), CanonicalUnit(unit_id=1, floor=0, door=1))
        assert score == 1.0


class TestSizeScore:
    """Test size tolerance bands."""

    def test_bands(self):
        """Test relative difference bands."""
        assert score_size(100, 100) == (1.0, "SIZE_5")
        assert score_size(100, 104) == (1.0, "SIZE_5")
        assert score_size(90, 85) == (0.8, "SIZE_10")
        assert score_size(100, 125) == (0.5, "SIZE_20")
        assert score_size(100, 150) == (0.0, "SIZE_MISMATCH")

    def test_symmetric(self):
        """Test size score does not depend on argument order."""
        assert score_size(85, 90) == score_size(90, 85)

    def test_missing_or_malformed(self):
        """Test missing, zero, negative and NaN sizes score 0."""
        for value in (None, 0, -5, math.nan, "abc"):
            assert score_size(value, 85) == (0.0, "SIZE_MISSING")
            assert score_size(85, value) == (0.0, "SIZE_MISSING")

    def test_positive_number(self):
        """Test positive number coercion."""
        assert positive_number("85.5") == 85.5
        assert positive_number(True) is None
        assert positive_number(math.inf) is None


class TestCompositeScore:
    """Test composite scoring and method labels."""

    def test_exact_match(self):
        """Test identical unit scores at least 0.99 with method exact."""
        candidate = CandidateUnit(address="Vesterbrogade 123", floor=4, door=1, size_sqm=85)
        canonical = CanonicalUnit(unit_id=7, address="vesterbrogade 123", floor=4, door=1, size_sqm=85)

        scored = calculate_match_score(candidate, canonical)
        assert scored.score >= 0.99
        assert scored.method == "exact"
        assert scored.unit.unit_id == 7
        assert scored.reason_codes == ["ADDR_EXACT", "FLOOR_DOOR", "SIZE_5"]

    def test_size_drift(self):
        """Test size drift within 10% gives 0.94."""
        candidate = CandidateUnit(address="Vesterbrogade 123", floor=4, door=1, size_sqm=90)
        canonical = CanonicalUnit(unit_id=7, address="vesterbrogade 123", floor=4, door=1, size_sqm=85)

        scored = calculate_match_score(candidate, canonical)
        assert scored.size_score == 0.8
        assert scored.score == pytest.approx(0.94)

    def test_floor_door_only(self):
        """Test floor/door alone contributes 0.3."""
        scored = calculate_match_score(
            CandidateUnit(floor=2, door=3),
            CanonicalUnit(unit_id=1, address="X", floor=2, door=3)
        )
        assert scored.address_score == 0.0
        assert scored.size_score == 0.0
        assert scored.score == pytest.approx(0.3)
        assert scored.method == "composite"

    def test_rounded_threshold_sum(self):
        """Test address plus floor/door lands exactly on 0.7."""
        scored = calculate_match_score(
            CandidateUnit(address="Vesterbrogade 123", floor=4, door=1),
            CanonicalUnit(unit_id=1, address="Vesterbrogade 123", floor=4, door=1)
        )
        assert scored.score == 0.7

    def test_score_in_range(self):
        """Test composite stays in [0, 1]."""
        scored = calculate_match_score(CandidateUnit(), CanonicalUnit(unit_id=1))
        assert scored.score == 0.0

    def test_classify_method(self):
        """Test method labels."""
        assert classify_method(1.0, 1.0) == "exact"
        assert classify_method(0.9, 1.0) == "fuzzy"
        assert classify_method(1.0, 0.5) == "composite"
        assert classify_method(0.5, 1.0) == "composite"


class TestReasons:
    """Test human-readable reason text."""

    def test_format_known_code(self):
        """Test known codes map to text."""
        assert format_reason_code("SIZE_10") == "Size within 10%"
        assert format_reason_code("UNKNOWN") == "UNKNOWN"

    def test_below_threshold_score(self):
        """Test below-threshold reason includes the score."""
        text = compose_reasons(["BELOW_THRESHOLD", "ADDR_MISSING"], 0.3)
        assert text == "Best score 0.30 below threshold; Address missing"

    def test_below_threshold_without_score(self):
        """Test below-threshold reason without a score."""
        assert compose_reasons(["BELOW_THRESHOLD"]) == "Best score below threshold"
