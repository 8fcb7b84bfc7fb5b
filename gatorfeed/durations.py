"""Parsing and formatting durations such as ``1h30m`` or ``500ms``."""

from __future__ import annotations

import re
from decimal import Decimal

_UNITS_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}

_WHOLE = re.compile(r"[-+]?(?:(?:\d+\.?\d*|\.\d+)[^\d.]+)+")
_PART = re.compile(r"(\d+\.?\d*|\.\d+)([^\d.]+)")


def parse_duration(text: str) -> float:
    """Parse a duration string and return it in seconds.

    Raises ``ValueError`` for malformed input or unknown units.
    """
    if text in ("0", "+0", "-0"):
        return 0.0
    if not _WHOLE.fullmatch(text):
        if text and re.fullmatch(r"[-+]?[\d.]+", text):
            raise ValueError(f"missing unit in duration {text!r}")
        raise ValueError(f"invalid duration {text!r}")
    sign = -1 if text.startswith("-") else 1
    total = Decimal(0)
    for number, unit in _PART.findall(text.lstrip("+-")):
        if unit not in _UNITS_NS:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        total += Decimal(number) * _UNITS_NS[unit]
    return sign * float(int(total) / 1_000_000_000)


def _with_fraction(value: int, digits: int) -> str:
    scale = 10**digits
    whole, rest = divmod(value, scale)
    if not rest:
        return str(whole)
    return f"{whole}." + f"{rest:0{digits}d}".rstrip("0")


def format_duration(seconds: float) -> str:
    """Format a number of seconds in the compact ``1h2m3.5s`` style."""
    ns = round(seconds * 1_000_000_000)
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns == 0:
        return "0s"
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_with_fraction(ns, 3)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_with_fraction(ns, 6)}ms"
    whole, frac = divmod(ns, 1_000_000_000)
    text = _with_fraction((whole % 60) * 1_000_000_000 + frac, 9) + "s"
    minutes = whole // 60
    if minutes:
        text = f"{minutes % 60}m" + text
        hours = minutes // 60
        if hours:
            text = f"{hours}h" + text
    return sign + text