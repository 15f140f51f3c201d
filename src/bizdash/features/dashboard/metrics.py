"""Window filter and metric aggregation over already-fetched records.

Everything here is pure: records in, numbers or rows out. Monetary fields
go through ``to_number`` first, so a missing or malformed amount counts as
zero instead of turning a whole total into NaN.
"""
import datetime
import math
from decimal import Decimal
from typing import Any, Callable, Hashable, Iterable, Mapping, Optional, Sequence, TypeVar

from .period import Period, as_aware

T = TypeVar("T")


def to_number(value: Any) -> float:
    """Coerces an amount or quantity to a finite float, 0.0 when it isn't one."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0.0
    return number if math.isfinite(number) else 0.0


def format_money(value: float) -> str:
    """Fixed two decimal rendering used in category totals, e.g. "12.30"."""
    return f"{to_number(value):.2f}"


def filter_by_period(records: Iterable[T], period: Period, date_field: str = "created_at") -> list[T]:
    """Keeps the records whose ``date_field`` falls inside ``period``, both ends included."""
    return [record for record in records if period.contains(getattr(record, date_field, None))]


def filter_until(records: Iterable[T], instant: datetime.datetime, date_field: str = "created_at") -> list[T]:
    """Keeps the records created on or before ``instant``."""
    cutoff = as_aware(instant)
    return [
        record for record in records
        if getattr(record, date_field, None) is not None and as_aware(getattr(record, date_field)) <= cutoff
    ]


def sum_where(records: Iterable[T], predicate: Optional[Callable[[T], bool]], field: str) -> float:
    return sum(
        (to_number(getattr(record, field, None)) for record in records if predicate is None or predicate(record)),
        0.0,
    )


def count_where(records: Iterable[T], predicate: Optional[Callable[[T], bool]] = None) -> int:
    return sum(1 for record in records if predicate is None or predicate(record))


def group_sum(
    records: Iterable[T],
    key_fn: Callable[[T], Optional[Hashable]],
    value_fn: Callable[[T], Any],
) -> dict[Hashable, float]:
    """
    Totals ``value_fn`` per ``key_fn`` in first-seen key order.

    Records whose key is falsy (None, "", whitespace only) are left out
    rather than collected under a default bucket. Other keys are grouped
    exactly as given.
    """
    totals: dict[Hashable, float] = {}
    for record in records:
        key = key_fn(record)
        if not (key.strip() if isinstance(key, str) else key):
            continue
        totals[key] = totals.get(key, 0.0) + to_number(value_fn(record))
    return totals


def top_n(rows: Iterable[T], rank_fn: Callable[[T], float], n: int) -> list[T]:
    """Highest ``rank_fn`` first, equal ranks keep their input order, at most ``n`` rows."""
    if n <= 0:
        return []
    return sorted(rows, key=rank_fn, reverse=True)[:n]


def retention_rate(prev_active: int, new_in_period: int) -> float:
    """((prev - new) / prev) * 100, unclamped; 0 when there was nobody to retain."""
    if prev_active <= 0:
        return 0.0
    return (prev_active - new_in_period) / prev_active * 100


def churn_rate(prev_active: int, current_active: int) -> float:
    """((prev - current) / prev) * 100, unclamped; negative means net growth."""
    if prev_active <= 0:
        return 0.0
    return (prev_active - current_active) / prev_active * 100


def daily_retention(
    days: Sequence[datetime.date],
    prev_active: int,
    new_by_day: Mapping[datetime.date, int],
) -> list[tuple[datetime.date, float]]:
    """
    Folds the day list in order, carrying the remaining customer count.

    Each day starts from what the previous day left, subtracts that day's
    new customers and reports ``after / before * 100``. The first day is
    seeded with the previous period's active count.
    """
    series = []
    remaining = prev_active
    for day in days:
        before = remaining
        after = before - new_by_day.get(day, 0)
        rate = after / before * 100 if before != 0 else 0.0
        series.append((day, rate))
        remaining = after
    return series


def average_order_value(total_sale_amount: float, order_count: int) -> float:
    if order_count <= 0:
        return 0.0
    return to_number(total_sale_amount) / order_count
