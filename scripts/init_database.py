#!/usr/bin/env python3
"""
SettleWatch Database Initialization Script.

Creates the SQLite file index with the required schema.
Requires Python 3.11+.

Usage:
    python scripts/init_database.py [--data-dir DIR] [--clear]
"""

import argparse
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from sqlalchemy.exc import SQLAlchemyError

from pipeline.index import FileIndex
from utils.config import get_settings
from utils.logger import configure_logging, get_logger


configure_logging()
logger = get_logger("init_database")


def init_database(data_dir: Path | None = None, clear: bool = False) -> None:
    """
    Initialize the file index database.

    Args:
        data_dir: Directory holding the database, defaults to DATA_DIR
        clear: Whether to drop existing entries first
    """
    settings = get_settings().pipeline
    db_path = (data_dir or settings.data_dir) / settings.index_db_name
    logger.info("initializing_database", path=str(db_path))

    index = FileIndex(db_path)

    try:
        created = index.initialize()

        if clear:
            logger.warning("clearing_existing_data")
            index.clear()

        logger.info("database_initialized", created=created, entries=index.count())

        print("\n✓ Database initialized successfully!")
        print(f"  Path: {db_path}")

    except (SQLAlchemyError, OSError) as e:
        logger.error("initialization_failed", error=str(e))
        print(f"\n✗ Failed to initialize database: {e}")
        sys.exit(1)

    finally:
        index.close()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Initialize the SettleWatch file index"
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding the database (default: DATA_DIR)",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear existing entries before initialization",
    )

    args = parser.parse_args()

    try:
        init_database(data_dir=args.data_dir, clear=args.clear)
    except KeyboardInterrupt:
        print("\nCancelled by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
