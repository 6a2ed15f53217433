"""Ledger arithmetic and health classification helpers."""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

from .status import Health

logger = logging.getLogger(__name__)


def round2(value: float) -> float:
    """Round to 2 decimal places (hours are tracked to the hundredth)."""
    return round(float(value), 2)


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp.

    Naive timestamps are treated as UTC so they compare against aware ones.
    Returns None when the value is missing or unparseable.
    """
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def worked_hours_between(entry_at: Optional[str], exit_at: Optional[str]) -> float:
    """
    Hours between entry and exit, clamped at 0 and rounded to 2 places.

    Unparseable timestamps yield 0 rather than an error.
    """
    start = parse_timestamp(entry_at)
    end = parse_timestamp(exit_at)
    if start is None or end is None:
        logger.warning(
            "Unparseable yard timestamps (entry=%r, exit=%r); counting 0 hours",
            entry_at,
            exit_at,
        )
        return 0.0
    if end <= start:
        return 0.0
    return round2((end - start).total_seconds() / 3600)


def distance_delta(previous_reading: Optional[int], current_reading: int) -> int:
    """Odometer distance since the previous reading (0 when there is none)."""
    return current_reading - (previous_reading or 0)


def classify_health(
    hours_since_service: float, interval_hours: float, warning_before_hours: float
) -> Health:
    """Determine health by comparing hours since service to the interval."""
    if hours_since_service > interval_hours:
        return Health.OVERDUE
    if hours_since_service == interval_hours:
        return Health.DUE
    if interval_hours - hours_since_service <= warning_before_hours:
        return Health.DUE_SOON
    return Health.OK


_EPOCH_FLOOR = datetime.min.replace(tzinfo=timezone.utc)


def timestamp_sort_key(value: Optional[str]) -> datetime:
    """Parsed timestamp for ordering; unparseable values sort first."""
    return parse_timestamp(value) or _EPOCH_FLOOR


def is_finite_number(value) -> bool:
    """True for a real int/float that is neither NaN nor infinite (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_valid_reading(value) -> bool:
    """True for a non-negative whole odometer reading."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
