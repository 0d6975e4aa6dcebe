"""Rent roll matching job - extracted units vs stored units for one property."""
import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from rentroll_match.config import settings
from rentroll_match.ingest.extracted_units import load_extracted_units
from rentroll_match.ingest.rent_roll_units import fetch_property_units, ingest_rent_roll_units
from rentroll_match.match.matcher import match_units
from rentroll_match.match.models import CandidateUnit, CanonicalUnit, MatchResult, MatchingStats
from rentroll_match.match.stats import (
    calculate_stats,
    compose_summary,
    extra_canonical_units,
    matches_frame,
    stats_frame,
    unmatched_frame,
    units_frame,
)
from rentroll_match.utils.io import write_csv

logger = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName
        }
        if hasattr(record, "duration"):
            log_entry["duration_seconds"] = record.duration
        return json.dumps(log_entry)


def setup_logging(log_dir: Optional[Path] = None):
    """Configure root logger with a JSON file handler and a console handler."""
    log_dir = Path(log_dir or settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = os.path.abspath(log_dir / "match_rent_roll.log")

    root_logger = logging.getLogger()
    # Already configured by an earlier call in this process
    if any(getattr(h, "baseFilename", None) == log_file for h in root_logger.handlers):
        return

    # Setup file handler with JSON formatter
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(JSONFormatter())

    # Setup console handler with standard format
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def write_outputs(
    result: MatchResult,
    stats: MatchingStats,
    candidates: List[CandidateUnit],
    canonical_units: List[CanonicalUnit],
    out_dir: Optional[Path] = None
) -> Dict[str, Path]:
    """
    Write matched, unmatched, extra and summary CSVs.

    Returns:
        Dict mapping output name to the path written
    """
    out_dir = Path(out_dir or settings.out_dir)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M")

    summary_df = stats_frame(stats)
    summary_df.loc[len(summary_df)] = {"metric": "summary", "value": compose_summary(stats)}

    return {
        "matched": write_csv(
            matches_frame(result, candidates, canonical_units), out_dir / f"matched_units_{timestamp}.csv"
        ),
        "unmatched": write_csv(unmatched_frame(result), out_dir / f"unmatched_units_{timestamp}.csv"),
        "extra": write_csv(
            units_frame(extra_canonical_units(result, canonical_units)), out_dir / f"extra_units_{timestamp}.csv"
        ),
        "summary": write_csv(summary_df, out_dir / f"match_summary_{timestamp}.csv"),
    }


def run_matching(
    extracted_path: str,
    property_id: Optional[str] = None,
    units_file: Optional[str] = None,
    min_confidence: Optional[float] = None,
    db_path: Optional[Path] = None,
    out_dir: Optional[Path] = None
) -> MatchingStats:
    """
    Match an extraction result against the stored units of a property.

    Args:
        extracted_path: JSON extraction result or CSV/XLSX rent roll
        property_id: Property whose stored units to match against
        units_file: Optional CSV/XLSX of stored units to ingest first
        min_confidence: Threshold override (defaults to settings)
        db_path: DuckDB file (defaults to settings)
        out_dir: Output directory (defaults to settings)

    Returns:
        MatchingStats for the run
    """
    min_confidence = settings.min_confidence if min_confidence is None else min_confidence

    if units_file:
        ingest_rent_roll_units(units_file, property_id=property_id, db_path=db_path)

    candidates = load_extracted_units(extracted_path)
    canonical_units = fetch_property_units(property_id, db_path=db_path)

    match_start = datetime.now()
    result = match_units(candidates, canonical_units, min_confidence=min_confidence)
    match_duration = (datetime.now() - match_start).total_seconds()
    logger.info(f"Matching completed in {match_duration:.2f} seconds", extra={"duration": match_duration})

    stats = calculate_stats(result, canonical_units)
    paths = write_outputs(result, stats, candidates, canonical_units, out_dir)
    logger.info(compose_summary(stats))
    logger.info(f"Outputs written: {', '.join(str(p) for p in paths.values())}")
    return stats


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for rent roll matching job."""
    parser = argparse.ArgumentParser(description="Match extracted rent roll units against stored units")
    parser.add_argument(
        "--extracted",
        type=str,
        required=True,
        help="Path to extraction result (JSON) or rent roll (CSV/XLSX)"
    )
    parser.add_argument(
        "--property-id",
        type=str,
        help="Property whose stored units to match against (default: all units)"
    )
    parser.add_argument(
        "--units-file",
        type=str,
        help="CSV/XLSX of stored units to ingest before matching"
    )
    parser.add_argument(
        "--min-confidence",
        type=float,
        help=f"Minimum composite score to accept a match (default: {settings.min_confidence})"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="DuckDB file (overrides config)"
    )
    parser.add_argument(
        "--out-dir",
        type=str,
        help="Output directory (overrides config)"
    )
    args = parser.parse_args(argv)

    setup_logging()
    start_time = datetime.now()
    logger.info("Starting rent roll matching job...")

    try:
        stats = run_matching(
            args.extracted,
            property_id=args.property_id,
            units_file=args.units_file,
            min_confidence=args.min_confidence,
            db_path=Path(args.db_path) if args.db_path else None,
            out_dir=Path(args.out_dir) if args.out_dir else None,
        )
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Rent roll matching failed: {e}")
        return 1

    total_duration = (datetime.now() - start_time).total_seconds()
    logger.info(
        f"Rent roll matching complete: {stats.matched}/{stats.total_pdf_units} matched in {total_duration:.2f} seconds",
        extra={"duration": total_duration}
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
