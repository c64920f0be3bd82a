"""Lightweight Telegram notification for benchmark sweep progress.

Sends plain-text messages to a Telegram channel via the Bot API for:
- Sweep start
- Per-run results (filling rate or failure)
- Final sweep summary

No retry logic: progress updates are non-critical.
"""

from __future__ import annotations

import logging
import os

import httpx

from packt_bench.monitoring.records import RunRecord, SweepSummary

logger = logging.getLogger(__name__)

DEFAULT_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID", "")
TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


async def send_telegram(
    message: str,
    chat_id: str | None = None,
    token: str | None = None,
) -> bool:
    """Send a plain-text message to a Telegram channel.

    Args:
        message: Text to send.
        chat_id: Telegram chat ID. Defaults to TELEGRAM_CHAT_ID env var.
        token: Bot token. Defaults to TELEGRAM_BOT_TOKEN env var.

    Returns:
        True if message was sent successfully, False otherwise.
    """
    token = token or os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if not token:
        return False

    chat_id = chat_id or os.environ.get("TELEGRAM_CHAT_ID", DEFAULT_CHAT_ID)
    if not chat_id:
        return False

    url = TELEGRAM_API.format(token=token)
    payload = {"chat_id": chat_id, "text": message}

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(url, json=payload)
            data = resp.json()
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.debug("Telegram notification failed: %s", e)
        return False
    if not isinstance(data, dict):
        logger.debug("Telegram notification failed: unexpected reply %r", data)
        return False
    return bool(data.get("ok", False))


def format_sweep_start(
    filename: str,
    n: int,
    variant: str,
    rotation_allowed: bool,
    total_runs: int,
    deadline_seconds: float,
) -> str:
    """Format sweep start notification message.

    Example:
        >>> print(format_sweep_start("p10.txt", 10, "fixed 22", True, 10, 300))
        Sweep Started
        Problem: p10.txt (10 rectangles, fixed 22, rotation allowed)
        Runs: 10 (deadline 300s each)
    """
    rotation = "rotation allowed" if rotation_allowed else "no rotation"
    return (
        f"Sweep Started\n"
        f"Problem: {filename or '<stdin>'} ({n} rectangles, {variant}, {rotation})\n"
        f"Runs: {total_runs} (deadline {deadline_seconds:g}s each)"
    )


def format_run_result(record: RunRecord) -> str:
    """Format a single run's outcome.

    Example:
        >>> r = RunRecord("p.txt", 5, 10, 3, "free", False, False, error="solver timed out after 300s")
        >>> print(format_run_result(r))
        Run RETRY=5 N_HEIGHTS=10
        Error: solver timed out after 300s
    """
    header = f"Run RETRY={record.retry} N_HEIGHTS={record.n_candidates}"
    if record.failed:
        return f"{header}\nError: {record.error}"
    validity = "valid" if record.is_valid else "INVALID"
    return (
        f"{header}\n"
        f"Container: {record.container} ({validity})\n"
        f"Filling Rate: {record.filling_rate:.4f}\n"
        f"Duration: {record.duration}s"
    )


def format_sweep_summary(summary: SweepSummary) -> str:
    """Format final sweep results summary.

    Example:
        >>> s = SweepSummary("p.txt", total_runs=10, failed_runs=2, valid_runs=7,
        ...                  best_filling_rate=0.93, runtime_seconds=600)
        >>> print(format_sweep_summary(s))
        Sweep Complete
        Problem: p.txt
        Runs: 10 (7 valid, 2 failed)
        Best Filling Rate: 0.9300
        Runtime: 10.0 minutes
    """
    runtime_minutes = summary.runtime_seconds / 60
    return (
        f"Sweep Complete\n"
        f"Problem: {summary.filename or '<stdin>'}\n"
        f"Runs: {summary.total_runs} ({summary.valid_runs} valid, {summary.failed_runs} failed)\n"
        f"Best Filling Rate: {summary.best_filling_rate:.4f}\n"
        f"Runtime: {runtime_minutes:.1f} minutes"
    )
