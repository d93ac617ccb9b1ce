"""Pay-period boundaries and labels.

Period math is done with explicit weekday arithmetic rather than calendar
week numbers: which weekday closes a period depends on the client's start
day, so ISO weeks do not line up with Sunday-start clients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from payroll_checks.calculators.types import PayFrequency, PeriodStartDay

logger = logging.getLogger(__name__)

# date.weekday(): Monday == 0 ... Sunday == 6
_SATURDAY = 5
_SUNDAY = 6

PERIOD_LENGTH_DAYS = {
    PayFrequency.WEEKLY: 7,
    PayFrequency.BIWEEKLY: 14,
}


@dataclass(frozen=True)
class WorkPeriod:
    """1-based period index within the period-end date's year."""

    number: int
    label: str
    period_end: date


def parse_date(value: date | str | None) -> date | None:
    """Parse ``YYYY-MM-DD`` (or pass a date through); None if unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        logger.debug("Unparseable date %r", value)
        return None


def period_end_weekday(start_day: PeriodStartDay) -> int:
    """Weekday that closes a period starting on ``start_day``."""
    if PeriodStartDay(start_day) is PeriodStartDay.SUNDAY:
        return _SATURDAY
    return _SUNDAY


def previous_period_end(
    check_date: date | str,
    start_day: PeriodStartDay = PeriodStartDay.MONDAY,
    frequency: PayFrequency = PayFrequency.WEEKLY,
) -> date | None:
    """End date of the most recently completed period before ``check_date``.

    A check dated on the period-end weekday still steps back a full week:
    the in-progress period is never returned. Biweekly periods step back
    one more 7-day block.
    """
    parsed = parse_date(check_date)
    if parsed is None:
        return None

    days_back = (parsed.weekday() - period_end_weekday(start_day)) % 7
    if days_back == 0:
        days_back = 7
    end = parsed - timedelta(days=days_back)

    if PayFrequency(frequency) is PayFrequency.BIWEEKLY:
        end -= timedelta(days=7)
    return end


def period_label(
    number: int, start_day: PeriodStartDay, frequency: PayFrequency
) -> str:
    if PayFrequency(frequency) is PayFrequency.BIWEEKLY:
        return f"Pay Period {number}"
    if PeriodStartDay(start_day) is PeriodStartDay.SUNDAY:
        return f"Pay Week {number}"
    return f"Work Week {number}"


def work_period_number(
    check_date: date | str,
    start_day: PeriodStartDay = PeriodStartDay.MONDAY,
    frequency: PayFrequency = PayFrequency.WEEKLY,
) -> WorkPeriod | None:
    """Index of the period a check compensates for.

    Anchored to the first period boundary on or after January 1 of the
    period-end date's year. Returns None for an unparseable date.
    """
    period_end = previous_period_end(check_date, start_day, frequency)
    if period_end is None:
        return None

    length = PERIOD_LENGTH_DAYS[PayFrequency(frequency)]
    year_start = date(period_end.year, 1, 1)
    end_weekday = period_end_weekday(start_day)

    first_end = year_start + timedelta(days=(end_weekday - year_start.weekday()) % 7)
    anchor = first_end - timedelta(days=length - 1)
    if anchor < year_start:
        anchor = year_start

    elapsed = (period_end - anchor).days
    if elapsed < 0:
        elapsed += length
    number = elapsed // length + 1

    return WorkPeriod(
        number=number,
        label=period_label(number, start_day, frequency),
        period_end=period_end,
    )


def week_key(check_date: date | str) -> str | None:
    """ISO date of the Sunday that begins the check's calendar week."""
    parsed = parse_date(check_date)
    if parsed is None:
        return None
    sunday = parsed - timedelta(days=(parsed.weekday() + 1) % 7)
    return sunday.isoformat()


def iso_week_number(check_date: date | str) -> int | None:
    parsed = parse_date(check_date)
    if parsed is None:
        return None
    return parsed.isocalendar()[1]


def week_ending_label(
    check_date: date | str,
    start_day: PeriodStartDay = PeriodStartDay.MONDAY,
    frequency: PayFrequency = PayFrequency.WEEKLY,
) -> str | None:
    """``W/E MM/DD/YYYY`` for the period a check compensates for."""
    period_end = previous_period_end(check_date, start_day, frequency)
    if period_end is None:
        return None
    return f"W/E {period_end.strftime('%m/%d/%Y')}"
