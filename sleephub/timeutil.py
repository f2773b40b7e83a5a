# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Time helpers. All hub instants are epoch milliseconds."""

import time
from datetime import datetime
from typing import Any, Optional

# Largest instant a JavaScript Date can hold, in either direction
MAX_INSTANT_MS = 8_640_000_000_000_000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def format_ms(ts_ms: Optional[int]) -> str:
    """Render an epoch-ms instant as local ISO time for log lines.

    Instants the platform cannot represent are shown as raw milliseconds.
    """
    if ts_ms is None:
        return "-"
    try:
        return datetime.fromtimestamp(ts_ms / 1000).isoformat(timespec="seconds")
    except (ValueError, OverflowError, OSError):
        return f"{ts_ms}ms"


def is_number(value: Any) -> bool:
    """True for int/float values. Booleans do not count."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _in_range(ts_ms: int) -> Optional[int]:
    if -MAX_INSTANT_MS <= ts_ms <= MAX_INSTANT_MS:
        return ts_ms
    return None


def parse_instant_ms(value: Any) -> Optional[int]:
    """Parse a wake time into epoch milliseconds.

    Accepts epoch milliseconds (number or numeric string) and ISO-8601
    strings. Naive ISO strings are read as local time. Returns None when
    the value cannot be parsed or lies outside +/-8.64e15 ms.
    """
    if is_number(value):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return _in_range(int(value))

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return _in_range(int(float(text)))
    except (ValueError, OverflowError):
        pass

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            parsed = parsed.astimezone()
        return _in_range(int(parsed.timestamp() * 1000))
    except (ValueError, OverflowError, OSError):
        return None


def parse_int(value: Any) -> Optional[int]:
    """Lenient integer parse for request fields. None if not numeric."""
    if is_number(value):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except (ValueError, OverflowError):
            return None
    return None
