"""Conversion between typed race times and integer milliseconds."""

from __future__ import annotations

import re
from typing import Optional

from .errors import InvalidTimeFormat

_MINUTES_CENTIS = re.compile(r"^(\d+):(\d{1,2})\.(\d{1,2})$")
_SECONDS_CENTIS = re.compile(r"^(\d+)\.(\d{1,2})$")
_MINUTES_SECONDS = re.compile(r"^(\d+):(\d{1,2})$")
_WHOLE_SECONDS = re.compile(r"^\d+$")
_COLON_CENTIS = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})$")
_FORMATTED = re.compile(r"^\d{1,2}:\d{2}\.\d{2}$")

PLACEHOLDER = "-"


def _centis(fraction: str) -> int:
    # ".5" means 50 hundredths, not 5
    return int(fraction.ljust(2, "0"))


def parse_time(text: Optional[str]) -> int:
    """Parse ``M:SS.cc``, ``SS.cc``, ``M:SS`` or whole seconds into milliseconds.

    Raises :class:`InvalidTimeFormat` for blank or malformed text and for a
    seconds segment of 60 or more when a minutes segment is present.
    """

    trimmed = (text or "").strip()
    if not trimmed:
        raise InvalidTimeFormat(text)

    match = _MINUTES_CENTIS.match(trimmed)
    if match:
        minutes, seconds = int(match.group(1)), int(match.group(2))
        if seconds >= 60:
            raise InvalidTimeFormat(text)
        return minutes * 60_000 + seconds * 1000 + _centis(match.group(3)) * 10

    match = _SECONDS_CENTIS.match(trimmed)
    if match:
        return int(match.group(1)) * 1000 + _centis(match.group(2)) * 10

    match = _MINUTES_SECONDS.match(trimmed)
    if match:
        minutes, seconds = int(match.group(1)), int(match.group(2))
        if seconds >= 60:
            raise InvalidTimeFormat(text)
        return minutes * 60_000 + seconds * 1000

    if _WHOLE_SECONDS.match(trimmed):
        return int(trimmed) * 1000

    raise InvalidTimeFormat(text)


def parse_time_or_none(text: Optional[str]) -> Optional[int]:
    """Like :func:`parse_time` but blank input and ``-`` mean "no time"."""

    trimmed = (text or "").strip()
    if not trimmed or trimmed == PLACEHOLDER:
        return None
    return parse_time(trimmed)


def format_time(ms: Optional[int]) -> str:
    if ms is None:
        return PLACEHOLDER
    total_seconds = ms // 1000
    minutes, seconds = divmod(total_seconds, 60)
    centis = (ms % 1000) // 10
    if minutes > 0:
        return f"{minutes}:{seconds:02d}.{centis:02d}"
    return f"{seconds}.{centis:02d}"


def format_delta(ms: Optional[int]) -> str:
    """Gap to the winner in seconds (``61.00``); empty for the winner itself or a missing value."""

    if ms is None or ms <= 0:
        return ""
    return f"{ms / 1000:.2f}"


def auto_format_time(raw: Optional[str]) -> Optional[str]:
    """Best-effort tidy-up of a time that is still being typed.

    ``22360`` becomes ``02:23.60`` and ``02:01:20`` becomes ``02:01.20``.
    Only ever a display aid; stored times always come from :func:`parse_time`.
    """

    if not raw:
        return raw
    trimmed = raw.strip()

    match = _COLON_CENTIS.match(trimmed)
    if match:
        return f"{match.group(1).zfill(2)}:{match.group(2)}.{match.group(3)}"

    if _FORMATTED.match(trimmed):
        return trimmed

    if _WHOLE_SECONDS.match(trimmed):
        padded = trimmed.zfill(6)
        return f"{padded[:-4]}:{padded[-4:-2]}.{padded[-2:]}"

    return trimmed
