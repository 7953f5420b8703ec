"""
US equity market trading calendar.

Resolves the most recent completed trading day for end-of-day data requests.
Holidays are computed from rules (fixed dates with weekend observance and
nth-weekday floating holidays), so no yearly lookup tables are needed.

All functions are pure: no I/O and no module state.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional, Union

from trackvest.core.timezone import eastern_date

DateLike = Union[date, datetime, str]

DEFAULT_FALLBACK_DATE = "2025-01-31"
DEFAULT_MAX_ATTEMPTS = 15

API_DATE_FORMAT = "%Y-%m-%d"

MONDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = 0, 3, 4, 5, 6

# (month, day, name)
_FIXED_HOLIDAYS = (
    (1, 1, "New Year's Day"),
    (6, 19, "Juneteenth"),
    (7, 4, "Independence Day"),
    (11, 11, "Veterans Day"),
    (12, 25, "Christmas Day"),
)

# (month, weekday, nth, name); nth == -1 means last occurrence in the month
_FLOATING_HOLIDAYS = (
    (1, MONDAY, 3, "Martin Luther King Jr. Day"),
    (2, MONDAY, 3, "Presidents Day"),
    (5, MONDAY, -1, "Memorial Day"),
    (9, MONDAY, 1, "Labor Day"),
    (10, MONDAY, 2, "Columbus Day"),
    (11, THURSDAY, 4, "Thanksgiving Day"),
)


def parse_trading_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO string to a calendar date."""
    return eastern_date(value)


def format_api_date(day: DateLike) -> str:
    """Format a day as YYYY-MM-DD for upstream requests."""
    return parse_trading_date(day).strftime(API_DATE_FORMAT)


def format_market_date(value: DateLike) -> str:
    """Human-readable market date, e.g. 'Friday, June 14, 2024'."""
    day = parse_trading_date(value)
    return f"{day.strftime('%A, %B')} {day.day}, {day.year}"


def is_weekend(day: date) -> bool:
    """Check if a day falls on Saturday or Sunday."""
    return day.weekday() >= SATURDAY


def nth_weekday(year: int, month: int, weekday: int, nth: int) -> date:
    """
    Return the nth given weekday of a month (nth=-1 for the last one).

    Example: nth_weekday(2024, 11, THURSDAY, 4) is Thanksgiving 2024.
    """
    if nth > 0:
        first = date(year, month, 1)
        offset = (weekday - first.weekday()) % 7
        return first + timedelta(days=offset + 7 * (nth - 1))

    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)
    offset = (last.weekday() - weekday) % 7
    return last - timedelta(days=offset)


def observed_date(actual: date) -> date:
    """Shift a weekend holiday to its observed weekday (Sat -> Fri, Sun -> Mon)."""
    if actual.weekday() == SATURDAY:
        return actual - timedelta(days=1)
    if actual.weekday() == SUNDAY:
        return actual + timedelta(days=1)
    return actual


def observed_holidays(year: int) -> dict[date, str]:
    """
    Return every observed market holiday whose observed date falls in `year`.

    New Year's Day of the following year is included when it lands on a
    Saturday, since it is then observed on December 31.
    """
    holidays: dict[date, str] = {}

    for holiday_year in (year, year + 1):
        for month, day, name in _FIXED_HOLIDAYS:
            observed = observed_date(date(holiday_year, month, day))
            if observed.year == year:
                holidays[observed] = name

    for month, weekday, nth, name in _FLOATING_HOLIDAYS:
        holidays[nth_weekday(year, month, weekday, nth)] = name

    return holidays


def holiday_name(day: date) -> Optional[str]:
    """Return the holiday observed on `day`, or None."""
    return observed_holidays(day.year).get(day)


def is_market_holiday(day: date) -> bool:
    """Check if a day is an observed market holiday."""
    return holiday_name(day) is not None


def is_trading_day(day: date, closures: Iterable[DateLike] = ()) -> bool:
    """Check if the market is open on `day` (not weekend, holiday or closure)."""
    if is_weekend(day) or is_market_holiday(day):
        return False
    return day not in {parse_trading_date(c) for c in closures}


def resolve_trading_date(
    reference_date: Optional[DateLike] = None,
    overrides: Optional[Mapping[DateLike, DateLike]] = None,
    *,
    fallback_date: DateLike = DEFAULT_FALLBACK_DATE,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    closures: Iterable[DateLike] = (),
) -> str:
    """
    Resolve the most recent completed trading day before `reference_date`.

    Walks backward from the day before the reference date, skipping weekends,
    observed holidays and ad-hoc closures. At most `max_attempts` candidate days
    are examined; if none qualifies `fallback_date` is returned. The resolved day
    is then looked up in `overrides` (date -> substitute date) so that known
    upstream data gaps can be redirected.

    Returns:
        The trading day formatted as YYYY-MM-DD.
    """
    reference = eastern_date(reference_date)
    closed = {parse_trading_date(c) for c in closures}
    substitutes = {
        parse_trading_date(k): parse_trading_date(v)
        for k, v in (overrides or {}).items()
    }

    candidate = reference
    for _ in range(max_attempts):
        candidate -= timedelta(days=1)
        if is_weekend(candidate) or is_market_holiday(candidate) or candidate in closed:
            continue
        return format_api_date(substitutes.get(candidate, candidate))

    return format_api_date(fallback_date)
