"""Timezone utilities for US/Eastern market time."""

from datetime import date, datetime
from typing import Optional, Union

import pytz
from dateutil import parser as date_parser

EASTERN_TZ = pytz.timezone("US/Eastern")


def now_eastern() -> datetime:
    """Return current time in US/Eastern timezone."""
    return datetime.now(EASTERN_TZ)


def to_eastern(dt: datetime) -> datetime:
    """Convert a datetime to US/Eastern timezone."""
    if dt.tzinfo is None:
        # Assume naive datetime is already Eastern
        return EASTERN_TZ.localize(dt)
    return dt.astimezone(EASTERN_TZ)


def parse_datetime_eastern(value: str, default_tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """
    Parse a datetime string and return it in US/Eastern timezone.

    If no timezone is provided in the string, assumes US/Eastern.
    """
    dt = date_parser.parse(value)
    if dt.tzinfo is None:
        tz = default_tz or EASTERN_TZ
        dt = tz.localize(dt)
    return to_eastern(dt)


def eastern_date(value: Union[date, datetime, str, None] = None) -> date:
    """
    Return the US/Eastern calendar date for a reference value.

    None means now; datetimes are converted to Eastern first; plain dates pass through.
    """
    if value is None:
        return now_eastern().date()
    if isinstance(value, datetime):
        return to_eastern(value).date()
    if isinstance(value, date):
        return value
    return parse_datetime_eastern(value).date()
