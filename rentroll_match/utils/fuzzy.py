"""Fuzzy string matching utilities."""
from typing import Dict, List, Optional, Union
from rapidfuzz import distance, fuzz


def levenshtein_distance(a: str, b: str) -> int:
    """
    Minimum number of single-character edits needed to turn a into b.

    Args:
        a: First string
        b: Second string

    Returns:
        Edit distance (insertions, deletions, substitutions all cost 1)
    """
    return distance.Levenshtein.distance(a, b)


def string_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Levenshtein similarity ratio between two strings, case-insensitive.

    Computed as 1 - distance / max(len(a), len(b)). Identical strings score
    1.0; if either string is empty or None the score is 0.

    Args:
        a: First string
        b: Second string

    Returns:
        Similarity in [0, 1]
    """
    if not a or not b:
        return 0.0

    a_lower = a.lower()
    b_lower = b.lower()

    if a_lower == b_lower:
        return 1.0

    max_len = max(len(a_lower), len(b_lower))
    return 1.0 - levenshtein_distance(a_lower, b_lower) / max_len


def find_header_match(
    target: str,
    candidate_headers: list,
    threshold: float = 80.0
) -> Optional[str]:
    """
    Find the best matching header using fuzzy string matching.

    Args:
        target: The header name to match
        candidate_headers: List of candidate header names
        threshold: Minimum similarity score (0-100)

    Returns:
        Best matching header name or None if below threshold
    """
    if not candidate_headers:
        return None

    best_match = None
    best_score = 0.0

    for header in candidate_headers:
        score = fuzz.ratio(target.upper(), str(header).upper())
        if score > best_score:
            best_score = score
            best_match = header

    if best_score >= threshold:
        return best_match
    return None


def map_headers(
    expected_headers: Dict[str, Union[str, List[str]]],
    actual_headers: list,
    threshold: float = 80.0
) -> Dict[str, Optional[str]]:
    """
    Map expected header names to actual headers using fuzzy matching.

    Args:
        expected_headers: Dict mapping canonical names to an expected header
            name or a list of accepted aliases (tried in order)
        actual_headers: List of actual header names from file
        threshold: Minimum similarity score for fuzzy matching

    Returns:
        Dict mapping canonical names to actual header names (or None if not found)
    """
    mapping: Dict[str, Optional[str]] = {}
    used_headers = set()

    def _aliases(expected):
        return [expected] if isinstance(expected, str) else list(expected)

    # First pass: exact matches (case-insensitive)
    for canonical, expected in expected_headers.items():
        for alias in _aliases(expected):
            hit = next(
                (actual for actual in actual_headers
                 if str(actual).strip().upper() == alias.upper() and actual not in used_headers),
                None
            )
            if hit is not None:
                mapping[canonical] = hit
                used_headers.add(hit)
                break

    # Second pass: fuzzy matches for unmapped headers
    for canonical, expected in expected_headers.items():
        if canonical in mapping:
            continue
        mapping[canonical] = None
        remaining = [h for h in actual_headers if h not in used_headers]
        for alias in _aliases(expected):
            match = find_header_match(alias, remaining, threshold)
            if match is not None:
                mapping[canonical] = match
                used_headers.add(match)
                break

    return mapping
