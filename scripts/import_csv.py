#!/usr/bin/env python3
"""
CSV Import Script

Replaces the whole dataset with the contents of the two source files.

Usage:
    python scripts/import_csv.py \
        --institutions data/HASTANELER.csv \
        --placements data/TUSPUANLAR.csv
"""
import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from tus_guide.core.config import get_settings
from tus_guide.core.logging_config import configure_logging
from tus_guide.db.database import engine, get_db_session
from tus_guide.db.schema import init_schema
from tus_guide.services.import_service import (
    load_institutions,
    load_placements,
    replace_dataset,
)

logger = logging.getLogger("import_csv")


def parse_args(argv=None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Replace the TUS dataset from CSV files.")
    parser.add_argument("--institutions", default="data/HASTANELER.csv",
                        help="institution file (code;name;type;kind;city)")
    parser.add_argument("--placements", default="data/TUSPUANLAR.csv",
                        help="placement results file (13 columns)")
    parser.add_argument("--batch-size", type=int, default=settings.import_batch_size)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(get_settings().log_level)

    logger.info("Starting CSV import")
    try:
        institutions = load_institutions(args.institutions)
        placements = load_placements(args.placements)
    except (OSError, ValueError) as e:
        # ValueError covers pandas parse errors (ParserError, bad column count)
        logger.error("Could not read input: %s", e)
        return 1
    logger.info("Parsed %d institutions, %d placement records",
                len(institutions), len(placements))

    try:
        init_schema(engine)
        with get_db_session() as db:
            replace_dataset(db, institutions, placements, batch_size=args.batch_size)
    except SQLAlchemyError:
        logger.exception("Import failed, previous data left in place")
        return 1

    logger.info("Import completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
