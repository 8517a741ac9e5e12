"""
Schema migrations for the serverpulse database.

``*.sql`` files in ``migrations/`` run once each, in file-name order. The
SHA-256 of every applied file is recorded; a recorded file whose contents
later change is refused.
"""

import hashlib
import sqlite3
import time
from contextlib import closing
from pathlib import Path
from typing import List, Tuple

import structlog

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

_LEDGER_DDL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        migration_name TEXT PRIMARY KEY,
        checksum TEXT NOT NULL,
        applied_at INTEGER NOT NULL
    ) STRICT
"""


def calculate_checksum(file_path: Path) -> str:
    """Hex SHA-256 of a migration file."""
    return hashlib.sha256(Path(file_path).read_bytes()).hexdigest()


def discover_migrations(migrations_dir: Path) -> List[Tuple[str, Path]]:
    """(name, path) pairs for every ``*.sql`` file, sorted by name."""
    return [(path.name, path) for path in sorted(Path(migrations_dir).glob("*.sql"))]


def _recorded_checksums(conn: sqlite3.Connection) -> dict[str, str]:
    return dict(conn.execute("SELECT migration_name, checksum FROM schema_migrations"))


def apply_migrations(db_path: Path, migrations_dir: Path = MIGRATIONS_DIR) -> Tuple[int, int]:
    """
    Run every migration not yet recorded in ``schema_migrations``.

    Args:
        db_path: SQLite file (created, with parent directories, if missing)
        migrations_dir: Directory holding the ``*.sql`` files

    Returns:
        (applied, skipped) counts

    Raises:
        RuntimeError: If an already-applied file was modified afterwards
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    applied = skipped = 0
    with closing(sqlite3.connect(str(db_path))) as conn:
        with conn:
            conn.execute(_LEDGER_DDL)
        recorded = _recorded_checksums(conn)

        for name, path in discover_migrations(migrations_dir):
            checksum = calculate_checksum(path)
            if name in recorded:
                if recorded[name] != checksum:
                    raise RuntimeError(
                        f"Migration {name} has been tampered with: recorded checksum "
                        f"{recorded[name]}, file now hashes to {checksum}"
                    )
                skipped += 1
                continue

            with conn:
                conn.executescript(path.read_text())
                conn.execute(
                    "INSERT INTO schema_migrations (migration_name, checksum, applied_at) "
                    "VALUES (?, ?, ?)",
                    (name, checksum, int(time.time())),
                )
            logger.info("migration_applied", migration=name, db_path=str(db_path))
            applied += 1

    return applied, skipped
