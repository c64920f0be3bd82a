"""Monitoring module for packt-bench.

Provides run records, CSV export and Telegram notifications for solver sweeps.
"""

from .records import (
    RecordWriter,
    RunRecord,
    SweepSummary,
    format_duration,
    format_summary,
)
from .telegram_notifier import (
    format_run_result,
    format_sweep_start,
    format_sweep_summary,
    send_telegram,
)

__all__ = [
    # Records
    "RecordWriter",
    "RunRecord",
    "SweepSummary",
    "format_duration",
    "format_summary",
    # Telegram
    "send_telegram",
    "format_sweep_start",
    "format_run_result",
    "format_sweep_summary",
]
