#!/usr/bin/env python3
"""
Create (or recreate) the timesheet reconciliation schema.

The database URL comes from --db-url, else the YAML file given with
--config, else DATABASE_URL.

Usage:
  python3 scripts/init_db.py [--db-url URL] [--config FILE] [--drop]

Prerequisites:
  - For PostgreSQL: the database exists and the role may create tables.
"""

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create the timesheet reconciliation schema")
    p.add_argument(
        "--db-url",
        default=None,
        help="Database URL (default: from --config, then DATABASE_URL)",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file",
    )
    p.add_argument(
        "--drop",
        action="store_true",
        help="Drop all tables before creating them",
    )
    return p.parse_args()


def main() -> int:
    args = _parse_args()

    from timesheet_kernel.config import DEFAULT_CONFIG, config_from_env, load_config
    from timesheet_kernel.db.engine import create_tables, drop_tables, init_engine_from_url
    from timesheet_kernel.logging_config import configure_logging

    base = load_config(args.config) if args.config else DEFAULT_CONFIG
    config = config_from_env(base)
    database_url = args.db_url or config.database_url
    configure_logging(level=getattr(logging, config.log_level, logging.INFO))

    print()
    print(f"  [1/3] Connecting to {database_url.split('@')[-1]}...")
    try:
        init_engine_from_url(database_url)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    if args.drop:
        print("  [2/3] Dropping tables...")
        drop_tables()
    else:
        print("  [2/3] Keeping existing tables")

    print("  [3/3] Creating schema...")
    create_tables()

    print()
    print("  Done.")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
