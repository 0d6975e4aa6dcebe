"""Stored rent-roll unit ingestion and lookup (DuckDB)."""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import duckdb
import pandas as pd

from rentroll_match.config import settings
from rentroll_match.ingest.extracted_units import (
    clean_floor,
    clean_int,
    clean_number,
    clean_postal_code,
    clean_text,
)
from rentroll_match.match.models import CanonicalUnit
from rentroll_match.utils.fuzzy import map_headers
from rentroll_match.utils.io import read_data_file

logger = logging.getLogger(__name__)

# Header mapping: canonical name -> accepted header names
EXPECTED_HEADERS: Dict[str, List[str]] = {
    "unit_id": ["UNIT_ID", "LEJEMAALSNR", "LEJEMÅLSNR", "ID"],
    "property_id": ["PROPERTY_ID", "ASSET_ID", "EJENDOMSNR"],
    "property_name": ["PROPERTY_NAME", "EJENDOM"],
    "unit_address": ["UNIT_ADDRESS", "ADRESSE", "ADDRESS"],
    "unit_zipcode": ["UNIT_ZIPCODE", "POSTNR", "ZIPCODE", "POSTAL_CODE"],
    "unit_door": ["UNIT_DOOR", "DØR", "DOOR"],
    "unit_floor": ["UNIT_FLOOR", "ETAGE", "FLOOR"],
    "size_sqm": ["SIZE_SQM", "M2", "AREAL"],
    "rent_current": ["RENT_CURRENT", "HUSLEJE", "RENT"],
    "tenant_name": ["TENANT_NAME", "LEJER", "TENANT"],
}

UNIT_COLUMNS = list(EXPECTED_HEADERS.keys())


def _connect(db_path: Optional[Union[str, Path]] = None) -> duckdb.DuckDBPyConnection:
    return duckdb.connect(str(db_path) if db_path is not None else settings.duckdb_path)


def init_units_schema(conn: duckdb.DuckDBPyConnection, table: Optional[str] = None):
    """Create the stored units table idempotently."""
    table = table or settings.units_table
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS {table} (
            unit_id BIGINT PRIMARY KEY,
            property_id VARCHAR,
            property_name VARCHAR,
            unit_address VARCHAR,
            unit_zipcode VARCHAR,
            unit_door INTEGER,
            unit_floor INTEGER,
            size_sqm DOUBLE,
            rent_current DOUBLE,
            tenant_name VARCHAR,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)


def standardize_units(df: pd.DataFrame, property_id: Optional[str] = None, threshold: Optional[float] = None) -> pd.DataFrame:
    """
    Map a stored-units table onto the standard columns.

    Args:
        df: Raw table (any header naming)
        property_id: Property to assign where the table has none
        threshold: Header similarity threshold

    Returns:
        DataFrame with UNIT_COLUMNS

    Raises:
        ValueError: If unit_id or address columns are missing, or unit ids
            are missing or duplicated
    """
    threshold = settings.header_similarity_min if threshold is None else threshold
    header_map = map_headers(EXPECTED_HEADERS, list(df.columns), threshold)
    logger.info(f"Header mapping: {header_map}")

    missing = [col for col in ("unit_id", "unit_address") if not header_map.get(col)]
    if missing:
        raise ValueError(f"Missing required headers: {missing}")

    def column(name: str) -> pd.Series:
        header = header_map.get(name)
        if header is None:
            return pd.Series([None] * len(df), index=df.index, dtype=object)
        return df[header]

    result = pd.DataFrame({
        "unit_id": column("unit_id").map(clean_int),
        "property_id": column("property_id").map(clean_text),
        "property_name": column("property_name").map(clean_text),
        "unit_address": column("unit_address").map(clean_text),
        "unit_zipcode": column("unit_zipcode").map(clean_postal_code),
        "unit_door": pd.array(column("unit_door").map(clean_int), dtype="Int64"),
        "unit_floor": pd.array(column("unit_floor").map(clean_floor), dtype="Int64"),
        "size_sqm": column("size_sqm").map(clean_number).astype(float),
        "rent_current": column("rent_current").map(clean_number).astype(float),
        "tenant_name": column("tenant_name").map(clean_text),
    })

    if property_id is not None:
        result["property_id"] = result["property_id"].where(result["property_id"].notna(), property_id)

    if result["unit_id"].isna().any():
        raise ValueError(f"{int(result['unit_id'].isna().sum())} rows have no readable unit id")
    duplicated = result.loc[result["unit_id"].duplicated(), "unit_id"].tolist()
    if duplicated:
        raise ValueError(f"Duplicate unit ids: {sorted(set(duplicated))}")

    result["unit_id"] = result["unit_id"].astype("int64")
    return result


def ingest_rent_roll_units(
    file_path: Union[str, Path],
    property_id: Optional[str] = None,
    db_path: Optional[Union[str, Path]] = None,
    table: Optional[str] = None
) -> pd.DataFrame:
    """
    Load stored units from CSV or XLSX into DuckDB.

    Existing rows with the same unit_id are replaced.

    Args:
        file_path: Path to input file
        property_id: Property to assign where the file has none
        db_path: DuckDB file (defaults to settings)
        table: Target table (defaults to settings)

    Returns:
        Standardized DataFrame that was written
    """
    table = table or settings.units_table
    logger.info(f"Starting stored unit ingestion from {file_path}")

    df = read_data_file(file_path)
    if df.empty:
        raise ValueError("Input file is empty")

    units_df = standardize_units(df, property_id=property_id)

    conn = _connect(db_path)
    try:
        init_units_schema(conn, table)
        conn.register("units_df", units_df)
        conn.execute(f"""
            INSERT OR REPLACE INTO {table}
            SELECT
                CAST(unit_id AS BIGINT),
                CAST(property_id AS VARCHAR),
                CAST(property_name AS VARCHAR),
                CAST(unit_address AS VARCHAR),
                CAST(unit_zipcode AS VARCHAR),
                CAST(unit_door AS INTEGER),
                CAST(unit_floor AS INTEGER),
                CAST(size_sqm AS DOUBLE),
                CAST(rent_current AS DOUBLE),
                CAST(tenant_name AS VARCHAR),
                CURRENT_TIMESTAMP
            FROM units_df
        """)
        conn.unregister("units_df")
    finally:
        conn.close()

    logger.info(f"Persisted {len(units_df)} stored units to {table}")
    return units_df


def _value(value: Any) -> Any:
    return None if value is None or pd.isna(value) else value


def row_to_unit(row: Dict[str, Any]) -> CanonicalUnit:
    """Build a CanonicalUnit from a stored units row."""
    door = _value(row.get("unit_door"))
    floor = _value(row.get("unit_floor"))
    size = _value(row.get("size_sqm"))
    rent = _value(row.get("rent_current"))
    return CanonicalUnit(
        unit_id=int(row["unit_id"]),
        property_id=_value(row.get("property_id")),
        property_name=_value(row.get("property_name")),
        address=_value(row.get("unit_address")),
        postal_code=_value(row.get("unit_zipcode")),
        door=int(door) if door is not None else None,
        floor=int(floor) if floor is not None else None,
        size_sqm=float(size) if size is not None else None,
        current_rent=float(rent) if rent is not None else None,
        tenant_name=_value(row.get("tenant_name")),
    )


def fetch_property_units(
    property_id: Optional[str] = None,
    db_path: Optional[Union[str, Path]] = None,
    table: Optional[str] = None
) -> List[CanonicalUnit]:
    """
    Fetch all stored units for a property, ordered by unit_id.

    Args:
        property_id: Property to scope to; all units when None
        db_path: DuckDB file (defaults to settings)
        table: Source table (defaults to settings)

    Returns:
        List of CanonicalUnit
    """
    table = table or settings.units_table
    columns = ", ".join(UNIT_COLUMNS)

    conn = _connect(db_path)
    try:
        init_units_schema(conn, table)
        if property_id is None:
            units_df = conn.execute(f"SELECT {columns} FROM {table} ORDER BY unit_id").df()
        else:
            units_df = conn.execute(
                f"SELECT {columns} FROM {table} WHERE property_id = ? ORDER BY unit_id",
                [property_id]
            ).df()
    finally:
        conn.close()

    units = [row_to_unit(row) for row in units_df.to_dict("records")]
    logger.info(f"Fetched {len(units)} stored units" + (f" for property {property_id}" if property_id else ""))
    return units
