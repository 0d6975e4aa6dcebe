"""Extracted rent-roll unit ingestion module."""
import logging
import numbers
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from rentroll_match.config import settings
from rentroll_match.match.models import CandidateUnit
from rentroll_match.utils.addresses import normalize_floor
from rentroll_match.utils.fuzzy import map_headers
from rentroll_match.utils.io import read_data_file, read_json_file

logger = logging.getLogger(__name__)

# Model field -> keys the extraction step may emit (tried in order)
EXTRACTION_KEYS: Dict[str, List[str]] = {
    "address": ["unit_address", "address"],
    "postal_code": ["unit_zipcode", "postal_code", "postalCode", "zipcode", "zip"],
    "door": ["unit_door", "door"],
    "floor": ["unit_floor", "floor"],
    "size_sqm": ["size_sqm", "sizeSqm"],
    "current_rent": ["rent_current", "current_rent", "currentRent"],
    "tenant_name": ["tenant_name", "tenantName"],
    "lease_start": ["lease_start", "leaseStart"],
    "lease_end": ["lease_end", "leaseEnd"],
}

# Header mapping for tabular rent rolls: canonical name -> accepted headers
EXPECTED_HEADERS: Dict[str, List[str]] = {
    "address": ["ADRESSE", "ADDRESS", "UNIT_ADDRESS"],
    "postal_code": ["POSTNR", "POSTNUMMER", "ZIPCODE", "UNIT_ZIPCODE", "POSTAL_CODE"],
    "floor": ["ETAGE", "FLOOR", "UNIT_FLOOR"],
    "door": ["DØR", "DOOR", "UNIT_DOOR"],
    "size_sqm": ["M2", "AREAL", "SIZE_SQM", "SIZE"],
    "current_rent": ["HUSLEJE", "LEJE", "RENT_CURRENT", "RENT"],
    "tenant_name": ["LEJER", "TENANT_NAME", "TENANT"],
    "lease_start": ["INDFLYTNING", "LEASE_START"],
    "lease_end": ["FRAFLYTNING", "LEASE_END"],
}

_NUMBER_TOKEN = re.compile(r"-?\d[\d.,]*")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_text(value: Any) -> Optional[str]:
    """Stripped string or None for empty/missing values."""
    if _is_missing(value):
        return None
    return str(value).strip()


def clean_number(value: Any) -> Optional[float]:
    """
    Extract a number from Danish or English formatted text.

    Handles "85,5", "12.500,00 kr", "12,500.00" and "85 m2". Returns None when
    no number can be read.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Number):
        return float(value)

    match = _NUMBER_TOKEN.search(str(value).replace(" ", "").replace("\u00a0", ""))
    if not match:
        return None

    token = match.group(0).rstrip(".,")
    if "," in token and "." in token:
        if token.rfind(",") > token.rfind("."):
            token = token.replace(".", "").replace(",", ".")
        else:
            token = token.replace(",", "")
    elif "," in token:
        if re.fullmatch(r"-?\d{1,3}(,\d{3})+", token):
            token = token.replace(",", "")
        else:
            token = token.replace(",", ".")
    elif re.fullmatch(r"-?\d{1,3}(\.\d{3})+", token):
        # Danish thousands separator
        token = token.replace(".", "")

    try:
        return float(token)
    except ValueError:
        return None


def clean_int(value: Any) -> Optional[int]:
    """Integer value or None; non-integral numbers are rejected."""
    number = clean_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def clean_floor(value: Any) -> Optional[int]:
    """Floor number from an integer or a label such as "st", "kl" or "2. sal"."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Number):
        return clean_int(value)

    floor = normalize_floor(str(value))
    return int(floor) if floor is not None else None


def clean_postal_code(value: Any) -> Optional[str]:
    """Four digit postal code when one is present, else the stripped text."""
    if _is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)

    text = str(value).strip()
    match = re.search(r"(?<!\d)(\d{4})(?!\d)", text)
    return match.group(1) if match else text


def _first_present(raw: Mapping[str, Any], keys: List[str]) -> Any:
    for key in keys:
        if key in raw and not _is_missing(raw[key]):
            return raw[key]
    return None


def coerce_extracted_unit(raw: Mapping[str, Any]) -> CandidateUnit:
    """
    Build a CandidateUnit from one extracted record.

    Unreadable values become None rather than raising.

    Args:
        raw: Record as produced by the extraction step

    Returns:
        CandidateUnit
    """
    values = {field: _first_present(raw, keys) for field, keys in EXTRACTION_KEYS.items()}

    return CandidateUnit(
        address=clean_text(values["address"]),
        postal_code=clean_postal_code(values["postal_code"]),
        door=clean_int(values["door"]),
        floor=clean_floor(values["floor"]),
        size_sqm=clean_number(values["size_sqm"]),
        current_rent=clean_number(values["current_rent"]),
        tenant_name=clean_text(values["tenant_name"]),
        lease_start=clean_text(values["lease_start"]),
        lease_end=clean_text(values["lease_end"]),
    )


def extracted_units_from_payload(payload: Any) -> List[CandidateUnit]:
    """
    Convert an extraction payload into CandidateUnits.

    Args:
        payload: {"units": [...]} document or a bare list of unit records

    Returns:
        List of CandidateUnit in document order
    """
    if isinstance(payload, Mapping):
        records = payload.get("units") or []
    elif isinstance(payload, list):
        records = payload
    else:
        raise ValueError(f"Unsupported extraction payload: {type(payload).__name__}")

    units = []
    for position, record in enumerate(records):
        if not isinstance(record, Mapping):
            logger.warning(f"Skipping extracted record {position}: not an object")
            continue
        units.append(coerce_extracted_unit(record))
    return units


def extracted_units_from_frame(df: pd.DataFrame, threshold: Optional[float] = None) -> List[CandidateUnit]:
    """
    Convert a tabular rent roll into CandidateUnits using fuzzy header mapping.

    Raises:
        ValueError: If no address, size or floor/door column can be found
    """
    threshold = settings.header_similarity_min if threshold is None else threshold
    header_map = map_headers(EXPECTED_HEADERS, list(df.columns), threshold)
    logger.info(f"Header mapping: {header_map}")

    if not any(header_map.get(col) for col in ("address", "size_sqm", "floor", "door")):
        raise ValueError(f"No usable unit columns found in headers: {list(df.columns)}")

    units = []
    for _, row in df.iterrows():
        raw = {field: row.get(header) for field, header in header_map.items() if header is not None}
        units.append(coerce_extracted_unit(raw))
    return units


def load_extracted_units(file_path: Union[str, Path], threshold: Optional[float] = None) -> List[CandidateUnit]:
    """
    Load extracted units from a JSON extraction result or a CSV/XLSX rent roll.

    Args:
        file_path: Path to the input file
        threshold: Header similarity threshold for tabular files

    Returns:
        List of CandidateUnit in file order
    """
    file_path = Path(file_path)
    logger.info(f"Loading extracted units from {file_path}")

    if file_path.suffix.lower() == ".json":
        units = extracted_units_from_payload(read_json_file(file_path))
    else:
        units = extracted_units_from_frame(read_data_file(file_path), threshold)

    logger.info(f"Loaded {len(units)} extracted units")
    return units
