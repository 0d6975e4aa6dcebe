"""Unit tests for stored unit ingestion and lookup."""
import duckdb
import pandas as pd
import pytest

from rentroll_match.ingest.rent_roll_units import (
    fetch_property_units,
    ingest_rent_roll_units,
    row_to_unit,
    standardize_units,
)


@pytest.fixture
def units_csv(tmp_path):
    """Stored units export for two properties."""
    path = tmp_path / "units.csv"
    path.write_text(
        "unit_id;property_id;unit_address;unit_zipcode;unit_floor;unit_door;size_sqm;rent_current;tenant_name\n"
        "12;P1;Vesterbrogade 123;1620;2;1;85,5;12.500,00;Jensen\n"
        "11;P1;Vesterbrogade 123;1620;st;1;60;;\n"
        "30;P2;Nørrebrogade 45;2200;1;2;70;9000;Hansen\n",
        encoding="utf-8"
    )
    return path


class TestStandardize:
    """Test stored unit standardisation."""

    def test_header_mapping(self):
        """Test Danish headers map onto the standard columns."""
        df = pd.DataFrame({
            "Lejemaalsnr": ["1", "2"],
            "Adresse": ["Vesterbrogade 123", "Vesterbrogade 123"],
            "Etage": ["kl", "3"],
            "Areal": ["50", ""],
        })
        result = standardize_units(df, property_id="P9")

        assert list(result["unit_id"]) == [1, 2]
        assert list(result["property_id"]) == ["P9", "P9"]
        assert list(result["unit_floor"]) == [-1, 3]
        assert pd.isna(result["size_sqm"].iloc[1])

    def test_duplicate_unit_ids(self):
        """Test duplicate unit ids are rejected."""
        df = pd.DataFrame({"unit_id": ["1", "1"], "unit_address": ["A 1", "A 2"]})
        with pytest.raises(ValueError, match="Duplicate unit ids"):
            standardize_units(df)

    def test_missing_unit_id(self):
        """Test rows without a unit id are rejected."""
        df = pd.DataFrame({"unit_id": ["1", ""], "unit_address": ["A 1", "A 2"]})
        with pytest.raises(ValueError):
            standardize_units(df)

    def test_missing_required_headers(self):
        """Test files without unit_id or address columns are rejected."""
        with pytest.raises(ValueError, match="Missing required headers"):
            standardize_units(pd.DataFrame({"Areal": ["50"]}))


class TestDuckDBStore:
    """Test DuckDB persistence."""

    def test_ingest_and_fetch(self, units_csv, tmp_path):
        """Test units round trip through DuckDB ordered by unit_id."""
        db_path = tmp_path / "test.duckdb"
        ingest_rent_roll_units(units_csv, db_path=db_path)

        units = fetch_property_units("P1", db_path=db_path)
        assert [u.unit_id for u in units] == [11, 12]
        assert units[0].floor == 0
        assert units[0].current_rent is None
        assert units[0].tenant_name is None
        assert units[1].size_sqm == 85.5
        assert units[1].current_rent == 12500.0
        assert units[1].postal_code == "1620"

        assert [u.unit_id for u in fetch_property_units(db_path=db_path)] == [11, 12, 30]
        assert fetch_property_units("P3", db_path=db_path) == []

    def test_reingest_replaces(self, units_csv, tmp_path):
        """Test re-ingesting the same unit ids replaces rows."""
        db_path = tmp_path / "test.duckdb"
        ingest_rent_roll_units(units_csv, db_path=db_path)
        ingest_rent_roll_units(units_csv, db_path=db_path)

        conn = duckdb.connect(str(db_path))
        count = conn.execute("SELECT COUNT(*) FROM rent_roll_units").fetchone()[0]
        conn.close()
        assert count == 3

    def test_fetch_empty_store(self, tmp_path):
        """Test fetching from a new database returns no units."""
        assert fetch_property_units("P1", db_path=tmp_path / "empty.duckdb") == []

    def test_ingest_missing_file(self, tmp_path):
        """Test missing input raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            ingest_rent_roll_units(tmp_path / "missing.csv", db_path=tmp_path / "test.duckdb")


class TestRowConversion:
    """Test storage row conversion."""

    def test_nan_fields_become_none(self):
        """Test NaN and NA values are dropped."""
        unit = row_to_unit({
            "unit_id": 5.0,
            "unit_address": "A 1",
            "unit_door": float("nan"),
            "unit_floor": pd.NA,
            "size_sqm": 42.0,
        })
        assert unit.unit_id == 5
        assert unit.door is None
        assert unit.floor is None
        assert unit.size_sqm == 42.0
        assert unit.property_id is None
