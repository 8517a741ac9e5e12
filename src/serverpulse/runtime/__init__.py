"""
Status reporter runtime.

Background execution context, the reporter lifecycle, and logging setup.
"""

from .background import BackgroundContext, PeriodicHandle
from .logging import configure_logging
from .reporter import ReporterState, StatusReporter

__all__ = [
    "BackgroundContext",
    "PeriodicHandle",
    "ReporterState",
    "StatusReporter",
    "configure_logging",
]
