from __future__ import annotations

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

LEDGER_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
INVALID_TIMESTAMP = "Invalid Date"


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def format_ledger_timestamp(raw: Optional[str], *, tz_name: str) -> str:
    """
    Render a caller-supplied ISO-8601 timestamp as local time in `tz_name`.

    Naive values are read as already being local. Anything that does not
    parse, or that falls outside years 1..9999 once converted, is written as
    the `INVALID_TIMESTAMP` sentinel instead of failing the submission.
    """
    parsed = parse_timestamp(raw)
    if parsed is None:
        return INVALID_TIMESTAMP
    tz = ZoneInfo(tz_name)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    try:
        local = parsed.astimezone(tz)
    except (OverflowError, ValueError):
        return INVALID_TIMESTAMP
    return local.strftime(LEDGER_TIMESTAMP_FORMAT)
