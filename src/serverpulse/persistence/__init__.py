# Persistence Layer - SQLite database and report identity

from .db import DatabaseManager, get_db, get_db_manager, set_db_manager
from .migrate import apply_migrations
from .report_state import (
    ReportIdentityStore,
    get_report_message_id,
    set_report_message_id,
)

__all__ = [
    "DatabaseManager",
    "get_db",
    "get_db_manager",
    "set_db_manager",
    "apply_migrations",
    "ReportIdentityStore",
    "get_report_message_id",
    "set_report_message_id",
]
