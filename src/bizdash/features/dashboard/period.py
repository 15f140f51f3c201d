"""Date range resolution for dashboard reports.

A report asks for a calendar unit (day, month or year) around a date the
caller typed. The date is a calendar date *in the organization's timezone*,
so "2024-03-15" for an organization in Asia/Kolkata covers the Kolkata day,
not the UTC day shifted by five and a half hours.

Every period is closed: both ``start`` and ``end`` belong to it, and ``end``
is the last millisecond of the unit (23:59:59.999 local).
"""
import calendar
import datetime
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...core.config import DEFAULT_TIMEZONE
from ...core.errors import InvalidInputError

logger = logging.getLogger(__name__)

FULL_DATE_PATTERN = re.compile(r"[0-9]{4}[-/][0-9]{2}[-/][0-9]{2}")
MONTH_PATTERN = re.compile(r"[0-9]{4}[-/][0-9]{2}")

START_OF_DAY = datetime.time.min
END_OF_DAY = datetime.time(23, 59, 59, 999000)

UTC = datetime.timezone.utc

OUT_OF_RANGE = "Date is outside the supported range."


class PeriodUnit(str, Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class DateStyle(str, Enum):
    """How a report expects its ``date`` query parameter."""

    FULL_DATE = "full_date"  # YYYY-MM-DD or YYYY/MM/DD, with a filter type
    MONTH = "month"  # YYYY-MM or YYYY/MM, always a month


def load_timezone(name: Optional[str]) -> ZoneInfo:
    """Returns the zone for an organization, falling back to UTC.

    An unknown zone is a configuration problem on the organization, not a
    caller error, so it is logged and the report is produced in UTC.
    """
    zone_name = name or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{zone_name}', reporting in UTC instead")
        return ZoneInfo("UTC")


def as_aware(instant: datetime.datetime) -> datetime.datetime:
    """Naive datetimes from a store are UTC."""
    if instant.tzinfo is None or instant.tzinfo.utcoffset(instant) is None:
        return instant.replace(tzinfo=UTC)
    return instant


def _unit_bounds(unit: PeriodUnit, day: datetime.date) -> tuple[datetime.date, datetime.date]:
    if unit is PeriodUnit.DAY:
        return day, day
    if unit is PeriodUnit.MONTH:
        last_day = calendar.monthrange(day.year, day.month)[1]
        return day.replace(day=1), day.replace(day=last_day)
    return datetime.date(day.year, 1, 1), datetime.date(day.year, 12, 31)


@dataclass(frozen=True)
class Period:
    unit: PeriodUnit
    start: datetime.datetime
    end: datetime.datetime

    @classmethod
    def around(cls, unit: PeriodUnit, day: datetime.date, tz: ZoneInfo) -> "Period":
        """The period of ``unit`` that contains the calendar date ``day`` in ``tz``."""
        first, last = _unit_bounds(unit, day)
        return cls(
            unit=unit,
            start=datetime.datetime.combine(first, START_OF_DAY, tzinfo=tz),
            end=datetime.datetime.combine(last, END_OF_DAY, tzinfo=tz),
        )

    @property
    def timezone(self) -> ZoneInfo:
        return self.start.tzinfo

    def contains(self, instant: Optional[datetime.datetime]) -> bool:
        if instant is None:
            return False
        return self.start <= as_aware(instant) <= self.end

    def local_date(self, instant: datetime.datetime) -> datetime.date:
        """The calendar date of ``instant`` as seen in this period's timezone."""
        return as_aware(instant).astimezone(self.timezone).date()

    def days(self) -> Iterator[datetime.date]:
        first = self.start.date()
        for offset in range((self.end.date() - first).days + 1):
            yield first + datetime.timedelta(days=offset)

    def previous(self) -> "Period":
        """The immediately preceding period of the same unit and timezone."""
        first = self.start.date()
        try:
            if self.unit is PeriodUnit.YEAR:
                anchor = datetime.date(first.year - 1, 1, 1)
            else:
                anchor = first - datetime.timedelta(days=1)  # for a month, its last day
        except (OverflowError, ValueError):
            raise InvalidInputError(OUT_OF_RANGE)
        return _representable(Period.around(self.unit, anchor, self.timezone))

    def utc_bounds(self) -> tuple[datetime.datetime, datetime.datetime]:
        return self.start.astimezone(UTC), self.end.astimezone(UTC)


def _representable(period: Period) -> Period:
    """Rejects periods whose ends cannot be expressed in UTC, e.g. 0001-01-01 east of Greenwich."""
    try:
        period.utc_bounds()
    except (OverflowError, ValueError):
        raise InvalidInputError(OUT_OF_RANGE)
    return period


def parse_unit(filter_type: Optional[str]) -> PeriodUnit:
    try:
        return PeriodUnit(filter_type)
    except ValueError:
        raise InvalidInputError("Invalid filter type. Use 'month', 'year', or 'day'.")


def validate_date_text(date_text: Optional[str], style: DateStyle) -> str:
    """Checks the shape of ``date_text`` before anything is fetched."""
    if style is DateStyle.MONTH:
        if not date_text or not MONTH_PATTERN.fullmatch(date_text):
            raise InvalidInputError("Invalid date format. Use YYYY/MM or YYYY-MM.")
    elif not date_text or not FULL_DATE_PATTERN.fullmatch(date_text):
        raise InvalidInputError("Invalid date format. Use YYYY-MM-DD or YYYY/MM/DD.")
    return date_text


def resolve_period(filter_type: Optional[str], date_text: Optional[str], timezone: Optional[str]) -> Period:
    """
    Resolves ``date_text`` and a filter type into a closed period.

    Args:
        filter_type: "day", "month" or "year".
        date_text: The requested date, YYYY-MM-DD or YYYY/MM/DD.
        timezone: IANA zone name of the organization; empty means UTC.

    Returns:
        Period: The day, month or year containing the date, in ``timezone``.

    Raises:
        InvalidInputError: Bad format, unknown filter type, month outside
            1-12, or a day the month does not have.
    """
    validate_date_text(date_text, DateStyle.FULL_DATE)
    unit = parse_unit(filter_type)

    year, month, day = (int(part) for part in date_text.replace("/", "-").split("-"))
    if not 1 <= month <= 12:
        raise InvalidInputError("Invalid month in date. Month must be between 01 and 12.")
    try:
        requested = datetime.date(year, month, day)
    except ValueError:
        raise InvalidInputError(f"Invalid date '{date_text}'.")

    return _representable(Period.around(unit, requested, load_timezone(timezone)))


def resolve_month(date_text: Optional[str], timezone: Optional[str]) -> Period:
    """Resolves the month-only form (YYYY-MM or YYYY/MM) into a month period."""
    validate_date_text(date_text, DateStyle.MONTH)

    year, month = (int(part) for part in re.split(r"[-/]", date_text))
    if not year or not 1 <= month <= 12:
        raise InvalidInputError("Invalid year or month in date.")

    return _representable(Period.around(PeriodUnit.MONTH, datetime.date(year, month, 1), load_timezone(timezone)))
