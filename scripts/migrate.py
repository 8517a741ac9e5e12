#!/usr/bin/env python3
"""
Bring a serverpulse database up to date.

    python scripts/migrate.py [DB_PATH]

DB_PATH defaults to data/serverpulse.db under the project root. The
reporter also migrates on startup; this is for operators who want to
prepare or inspect a database by hand.
"""

import sqlite3
import sys
from pathlib import Path

from serverpulse.persistence.migrate import MIGRATIONS_DIR, apply_migrations

DEFAULT_DB = Path(__file__).resolve().parent.parent / "data" / "serverpulse.db"


def main(argv: list[str]) -> int:
    db_path = Path(argv[0]) if argv else DEFAULT_DB
    print(f"Migrating {db_path} from {MIGRATIONS_DIR}")

    try:
        applied, skipped = apply_migrations(db_path, MIGRATIONS_DIR)
    except (RuntimeError, OSError, sqlite3.Error) as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    print(f"✓ {applied} applied, {skipped} already up to date")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
