from __future__ import annotations

import math
from datetime import datetime, time, timedelta
from typing import Any

from ..core.constants import MS_PER_MINUTE


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def start_of_day(instant: datetime) -> datetime:
    """Local midnight of the day containing ``instant``."""
    return datetime.combine(instant.date(), time.min)


def start_of_week(instant: datetime) -> datetime:
    """Monday midnight at or before ``instant`` (ISO week, locale independent)."""
    midnight = start_of_day(instant)
    return midnight - timedelta(days=midnight.weekday())


def _finite_or_zero(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return max(0.0, number)


def _half_up(value: float) -> int:
    # value is already clamped to >= 0
    return int(math.floor(value + 0.5))


def round_minutes(delta: timedelta) -> int:
    """Whole minutes in ``delta``, rounded half-up; negative spans count as zero."""
    ms = _finite_or_zero(delta.total_seconds() * 1000)
    return _half_up(ms / MS_PER_MINUTE)


def elapsed_minutes(start: datetime, end: datetime) -> float:
    """Fractional minutes from ``start`` to ``end``, clamped at zero."""
    return max(0.0, (end - start).total_seconds() / 60)


def format_duration(ms: Any) -> str:
    """Render milliseconds as ``"Hh Mm Ss"`` (>= 1 hour) or ``"Mm Ss"``."""
    total_seconds = int(_finite_or_zero(ms) // 1000)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    return f"{minutes}m {seconds}s"


def format_minutes(minutes: Any) -> str:
    """Render minutes as ``"Hh Mm"`` (>= 60) or ``"Mm"``, rounded to the nearest minute."""
    total = _half_up(_finite_or_zero(minutes))
    hours = total // 60
    rem = total % 60
    if hours > 0:
        return f"{hours}h {rem}m"
    return f"{rem}m"
