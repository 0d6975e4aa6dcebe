"""Danish address normalization utilities."""
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

# Street type variants -> canonical spelling (lowercase)
STREET_TYPES = {
    "allé": "alle",
    "gd.": "gade",
    "gd": "gade",
    "pl.": "plads",
    "str.": "stræde",
    "straede": "stræde",
    "boul.": "boulevard",
    "blvd.": "boulevard",
    "blvd": "boulevard",
    "vej.": "vej",
    "vj.": "vej",
}

# Floor labels -> floor number as string
FLOOR_MAPPINGS = {
    "st": "0",
    "stuen": "0",
    "stueetage": "0",
    "parterre": "0",
    "kl": "-1",
    "kld": "-1",
    "kælder": "-1",
    "kaelder": "-1",
}

# Door side labels -> canonical tag
DOOR_MAPPINGS = {
    "tv": "left",
    "th": "right",
    "mf": "middle",
    "v": "left",
    "h": "right",
    "m": "middle",
}

# Confidence weights (percent) per parsed component
CONFIDENCE_WEIGHTS = {
    "street_name": 30,
    "street_number": 25,
    "postal_code": 25,
    "floor": 10,
    "door": 10,
}

_FLOOR_TOKEN = (
    r"-?\d+(?:st|nd|rd|th)?\.?(?:\s*(?:sal|floor|etage))?"
    r"|st\.?|stuen|stueetage|parterre|kl\.?|kld\.?|kælder|kaelder"
)

# Canonical form produced by build_canonical: "vesterbrogade 123, fl4, dright, 1620"
CANONICAL_PATTERN = re.compile(
    r"^(?P<street>.+?)\s+(?P<number>\d+[a-zæøå]?)"
    r"(?:, fl(?P<floor>-?\d+))?"
    r"(?:, d(?P<door>[^\s,]+))?"
    r"(?:, (?P<postal>\d{4}))?$"
)

# "vesterbrogade 123, 4. th, 1620 københavn v", also "1.tv" / "st.th" without a space
FULL_PATTERN = re.compile(
    r"^(?P<street>.+?)\s+(?P<number>\d+[a-zæøå]?)[,\s]+"
    r"(?:(?P<floor>" + _FLOOR_TOKEN + r")(?:[,\s]+|(?<=\.)(?=[a-zæøå])))?"
    r"(?:(?P<door>[^\s,]+?)[,\s]+)?"
    r"(?P<postal>\d{4})(?:\s+(?P<city>.+))?$"
)

# "vesterbrogade 123, 1620"
SIMPLE_PATTERN = re.compile(
    r"^(?P<street>.+?)\s+(?P<number>\d+[a-zæøå]?)[,\s]+(?P<postal>\d{4})(?:\s+(?P<city>.+))?$"
)

# "vesterbrogade 123"
MINIMAL_PATTERN = re.compile(r"^(?P<street>.+?)\s+(?P<number>\d+[a-zæøå]?)$")

POSTAL_CODE_PATTERN = re.compile(r"^\d{4}$")


@dataclass(frozen=True)
class AddressComponents:
    """
    Structured parts of one address.

    floor and door are None when the address carried no recognisable token.
    """
    street_name: str
    street_number: str
    postal_code: str
    floor: Optional[str] = None
    door: Optional[str] = None
    city: Optional[str] = None


@dataclass(frozen=True)
class NormalizationResult:
    normalized: str
    components: AddressComponents
    confidence: float


EMPTY_COMPONENTS = AddressComponents(street_name="", street_number="", postal_code="")


@lru_cache(maxsize=1)
def street_type_patterns() -> Tuple[Tuple[re.Pattern, str], ...]:
    """Compiled word-boundary patterns for every street type variant."""
    return tuple(
        (re.compile(r"(?<!\w)" + re.escape(variant) + r"(?!\w)"), canonical)
        for variant, canonical in STREET_TYPES.items()
    )


def clean_address_text(raw: str) -> str:
    """Trim, lowercase and collapse internal whitespace."""
    return re.sub(r"\s+", " ", raw.strip().lower())


def canonicalize_street_types(text: str) -> str:
    """Replace street type variants with their canonical spelling."""
    for pattern, canonical in street_type_patterns():
        text = pattern.sub(canonical, text)
    return text


def normalize_floor(token: Optional[str]) -> Optional[str]:
    """
    Normalize a floor token.

    Ground floor labels map to "0", basement labels to "-1", anything else
    contributes its leading numeral ("4. sal" -> "4"). Returns None when the
    token cannot be interpreted.
    """
    if not token:
        return None

    normalized = token.strip().lower()
    key = normalized.rstrip(".")
    if key in FLOOR_MAPPINGS:
        return FLOOR_MAPPINGS[key]

    num_match = re.match(r"(-?\d+)", normalized)
    return str(int(num_match.group(1))) if num_match else None


def normalize_door(token: Optional[str]) -> Optional[str]:
    """Map door side labels to left/right/middle; other tokens pass through."""
    if not token:
        return None

    normalized = token.strip().lower()
    return DOOR_MAPPINGS.get(normalized.rstrip("."), normalized) or None


def parse_address_components(address: str) -> AddressComponents:
    """
    Parse a cleaned address string into components.

    A string already in canonical form is read back as-is. Otherwise patterns
    are tried from the most to the least informative; the first one that
    matches wins. If none matches, the whole string becomes the street name.
    """
    match = CANONICAL_PATTERN.match(address)
    if match:
        return AddressComponents(
            street_name=match.group("street").strip(),
            street_number=match.group("number"),
            postal_code=match.group("postal") or "",
            floor=normalize_floor(match.group("floor")),
            door=normalize_door(match.group("door")),
        )

    match = FULL_PATTERN.match(address)
    if match:
        return AddressComponents(
            street_name=match.group("street").strip(),
            street_number=match.group("number"),
            postal_code=match.group("postal"),
            floor=normalize_floor(match.group("floor")),
            door=normalize_door(match.group("door")),
            city=(match.group("city") or "").strip() or None,
        )

    match = SIMPLE_PATTERN.match(address)
    if match:
        return AddressComponents(
            street_name=match.group("street").strip(),
            street_number=match.group("number"),
            postal_code=match.group("postal"),
            city=(match.group("city") or "").strip() or None,
        )

    match = MINIMAL_PATTERN.match(address)
    if match:
        return AddressComponents(
            street_name=match.group("street").strip(),
            street_number=match.group("number"),
            postal_code="",
        )

    return AddressComponents(street_name=address, street_number="", postal_code="")


def calculate_confidence(components: AddressComponents) -> float:
    """Share of weighted components that were successfully parsed."""
    score = 0
    if components.street_name and len(components.street_name) > 2:
        score += CONFIDENCE_WEIGHTS["street_name"]
    if components.street_number:
        score += CONFIDENCE_WEIGHTS["street_number"]
    if components.postal_code and POSTAL_CODE_PATTERN.match(components.postal_code):
        score += CONFIDENCE_WEIGHTS["postal_code"]
    if components.floor is not None:
        score += CONFIDENCE_WEIGHTS["floor"]
    if components.door is not None:
        score += CONFIDENCE_WEIGHTS["door"]
    return score / sum(CONFIDENCE_WEIGHTS.values())


def build_canonical(components: AddressComponents) -> str:
    """Canonical address string used as the equality key between addresses."""
    parts = [
        f"{components.street_name} {components.street_number}".strip(),
        f"fl{components.floor}" if components.floor is not None else None,
        f"d{components.door}" if components.door is not None else None,
        components.postal_code,
    ]
    return ", ".join(part for part in parts if part)


def normalize_address(raw: Optional[str]) -> NormalizationResult:
    """
    Normalize a free-form Danish address.

    Args:
        raw: Address as written in the source document

    Returns:
        NormalizationResult with the canonical string, parsed components and a
        parse confidence in [0, 1]. Empty input yields an empty result with
        confidence 0.
    """
    if not raw or not isinstance(raw, str) or not raw.strip():
        return NormalizationResult(normalized="", components=EMPTY_COMPONENTS, confidence=0.0)

    text = canonicalize_street_types(clean_address_text(raw))
    components = parse_address_components(text)

    return NormalizationResult(
        normalized=build_canonical(components),
        components=components,
        confidence=calculate_confidence(components),
    )
