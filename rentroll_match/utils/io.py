"""File I/O utilities for CSV, XLSX and JSON."""
import json
import pandas as pd
from pathlib import Path
from typing import Any, Union
import logging

logger = logging.getLogger(__name__)


def read_data_file(file_path: Union[str, Path]) -> pd.DataFrame:
    """
    Read CSV or XLSX file into DataFrame.

    Args:
        file_path: Path to CSV or XLSX file

    Returns:
        DataFrame with file contents

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file format is not supported
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    suffix = file_path.suffix.lower()

    try:
        if suffix == ".csv":
            # Danish exports are often semicolon separated
            df = pd.read_csv(file_path, sep=None, engine="python", dtype=str)
        elif suffix == ".xlsx":
            df = pd.read_excel(file_path, engine="openpyxl", dtype=str)
        elif suffix == ".xls":
            try:
                df = pd.read_excel(file_path, engine="xlrd", dtype=str)
            except Exception as xlrd_error:
                # If xlrd fails, try openpyxl in case file is misnamed
                logger.warning(f"xlrd failed for {file_path}, trying openpyxl: {xlrd_error}")
                try:
                    df = pd.read_excel(file_path, engine="openpyxl", dtype=str)
                except Exception:
                    raise xlrd_error
        else:
            raise ValueError(f"Unsupported file format: {suffix}")

        logger.info(f"Loaded {len(df)} rows from {file_path}")
        return df

    except Exception as e:
        logger.error(f"Error reading {file_path}: {e}")
        raise


def read_json_file(file_path: Union[str, Path]) -> Any:
    """
    Read a JSON document.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file is not valid JSON
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        return json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_path}: {e}") from e


def write_csv(df: pd.DataFrame, output_path: Union[str, Path]) -> Path:
    """
    Write a DataFrame to CSV, creating the parent directory.

    Args:
        df: DataFrame to write
        output_path: Output file path

    Returns:
        Path written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    df.to_csv(output_path, index=False, encoding="utf-8")
    logger.info(f"Wrote {len(df)} rows to {output_path}")
    return output_path
