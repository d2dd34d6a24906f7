"""Text formats for timestamps and durations.

Timestamps use the compact UTC form downstream parsers expect
(20250114T162059Z). Durations use the same rendering as the Go
runtime that produced the first records (50ms, 1.5s, 2m3s), so
columns stay comparable across producers.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

COMPACT_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%SZ"
COMPACT_TIMESTAMP_RE = re.compile(r"^[0-9]{8}T[0-9]{6}Z$")

# Unit -> nanoseconds
_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def format_compact_timestamp(value: datetime) -> str:
    """Render a datetime as YYYYMMDDTHHMMSSZ in UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(COMPACT_TIMESTAMP_FORMAT)


def parse_compact_timestamp(text: str) -> datetime:
    """Inverse of format_compact_timestamp. Returns an aware UTC datetime."""
    if not isinstance(text, str) or not COMPACT_TIMESTAMP_RE.match(text):
        raise ValueError(f"not a compact UTC timestamp: {text!r}")
    return datetime.strptime(text, COMPACT_TIMESTAMP_FORMAT).replace(
        tzinfo=timezone.utc
    )


def is_compact_timestamp(value: object) -> bool:
    return isinstance(value, str) and bool(COMPACT_TIMESTAMP_RE.match(value))


def _fmt_frac(value: int, unit: int) -> str:
    """Render value/unit with trailing zeros trimmed (1500, 1000 -> '1.5')."""
    whole, rem = divmod(value, unit)
    if rem == 0:
        return str(whole)
    width = len(str(unit)) - 1
    frac = f"{rem:0{width}d}".rstrip("0")
    return f"{whole}.{frac}"


def format_duration(value: timedelta) -> str:
    """Render a timedelta the way Go's time.Duration.String() does."""
    total_ns = (
        (value.days * 86400 + value.seconds) * 1_000_000_000
        + value.microseconds * 1_000
    )
    sign = ""
    if total_ns < 0:
        sign = "-"
        total_ns = -total_ns

    if total_ns == 0:
        return "0s"
    if total_ns < 1_000:
        return f"{sign}{total_ns}ns"
    if total_ns < 1_000_000:
        return f"{sign}{_fmt_frac(total_ns, 1_000)}µs"
    if total_ns < 1_000_000_000:
        return f"{sign}{_fmt_frac(total_ns, 1_000_000)}ms"

    hours, rem = divmod(total_ns, 3600 * 1_000_000_000)
    minutes, rem = divmod(rem, 60 * 1_000_000_000)
    seconds = _fmt_frac(rem, 1_000_000_000)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def parse_duration(text: str) -> timedelta:
    """Parse Go-style duration text ('50ms', '1h2m3.5s', '-1.5s')."""
    if not isinstance(text, str):
        raise ValueError(f"duration text expected, got {type(text).__name__}")
    body = text.strip()
    sign = 1
    if body[:1] in ("-", "+"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f"invalid duration: {text!r}")

    pos = 0
    total_ns = 0.0
    for match in _DURATION_RE.finditer(body):
        if match.start() != pos:
            raise ValueError(f"invalid duration: {text!r}")
        number, unit = match.groups()
        total_ns += float(number) * _DURATION_UNITS[unit]
        pos = match.end()
    if pos != len(body):
        raise ValueError(f"invalid duration: {text!r}")

    try:
        return sign * timedelta(microseconds=round(total_ns / 1_000))
    except OverflowError as exc:
        raise ValueError(f"duration out of range: {text!r}") from exc
