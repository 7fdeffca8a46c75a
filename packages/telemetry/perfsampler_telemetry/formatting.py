"""Unit-scaled display strings for sample values."""

from __future__ import annotations

from datetime import datetime

BYTE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")
RATE_UNITS = ("B/s", "KB/s", "MB/s", "GB/s")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _scale(value: float, units: tuple[str, ...]) -> str:
    v = float(value)
    i = 0
    while v >= 1024 and i < len(units) - 1:
        v /= 1024
        i += 1
    return f"{v:.1f}{units[i]}"


def fmt_bytes(num_bytes: float) -> str:
    return _scale(num_bytes, BYTE_UNITS)


def fmt_rate(bytes_per_sec: float) -> str:
    return _scale(bytes_per_sec, RATE_UNITS)


def fmt_percent(value: float) -> str:
    return f"{value:.1f}%"


def fmt_ghz(mhz: float) -> str:
    return f"{mhz / 1000:.2f}GHz"


def fmt_uptime(ms: int) -> str:
    total_seconds = max(int(ms), 0) // 1000
    days, rem = divmod(total_seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    return f"{days}d {hours:02d}:{minutes:02d}:{seconds:02d}"


def fmt_timestamp(ts: datetime) -> str:
    return ts.strftime(TIMESTAMP_FORMAT)


def format_line(ts: datetime, tag: str, body: str) -> str:
    return f"{fmt_timestamp(ts)} | {tag} | {body}"
