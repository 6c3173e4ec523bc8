"""
Tick-driven import scheduler and result reporting.
"""

from ingestkit.scheduler.core import (
    ImportQueueEntry,
    ImportScheduler,
    SchedulerProgress,
    failure_line,
)
from ingestkit.scheduler.reporter import ConsoleReporter

__all__ = [
    "ConsoleReporter",
    "ImportQueueEntry",
    "ImportScheduler",
    "SchedulerProgress",
    "failure_line",
]
