from __future__ import annotations

from datetime import datetime

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_now() -> datetime:
    """Current local time as a timezone-aware datetime."""
    return datetime.now().astimezone()


def format_display(ts: datetime) -> str:
    """
    Render a timestamp for the table and chart labels with second
    precision, e.g. '2026-02-01 13:45:07'.
    """
    return ts.strftime(DISPLAY_FORMAT)
