"""Human-readable reason generation."""
from typing import Any, List, Optional


def format_reason_code(code: str, value: Any = None) -> str:
    """
    Format a reason code into human-readable text.

    Args:
        code: Reason code (e.g., "ADDR_EXACT", "SIZE_10")
        value: Optional value to include in reason

    Returns:
        Human-readable reason string
    """
    reason_map = {
        "ADDR_EXACT": "Address identical after normalization",
        "ADDR_FUZZY": "Address similar after normalization",
        "ADDR_WEAK": "Address differs",
        "ADDR_MISSING": "Address missing",
        "FLOOR_DOOR": "Floor and door match",
        "FLOOR_ONLY": "Floor matches, door differs",
        "DOOR_ONLY": "Door matches, floor differs",
        "FLOOR_DOOR_MISMATCH": "Floor and door differ or missing",
        "SIZE_5": "Size within 5%",
        "SIZE_10": "Size within 10%",
        "SIZE_20": "Size within 20%",
        "SIZE_MISMATCH": "Size differs by more than 20%",
        "SIZE_MISSING": "Size missing",
        "NO_CANDIDATES": "No stored units left to compare against",
        "BELOW_THRESHOLD": f"Best score {value} below threshold" if value else "Best score below threshold",
    }

    return reason_map.get(code, code)


def compose_reasons(reason_codes: List[str], score: Optional[float] = None) -> str:
    """
    Compose human-readable reasons from reason codes.

    Args:
        reason_codes: List of reason codes
        score: Composite score, shown for BELOW_THRESHOLD

    Returns:
        Human-readable reason string
    """
    reasons = []

    for code in reason_codes:
        value = None
        if code == "BELOW_THRESHOLD" and score is not None:
            value = f"{score:.2f}"
        reasons.append(format_reason_code(code, value))

    return "; ".join(reasons)
