import calendar
from datetime import datetime, timezone
from typing import Iterable, Protocol, TypeVar

from kpi_dashboard.models.period import DateRange, Period

DEFAULT_YEAR_ANCHOR = 2025


class Timestamped(Protocol):
    created_at: datetime | None


T = TypeVar("T", bound=Timestamped)


def as_aware(moment: datetime) -> datetime:
    # CRM timestamps are UTC; naive values are treated the same way.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_start(year: int, month: int, tz) -> datetime:
    return datetime(year, month, 1, tzinfo=tz)


def month_end(year: int, month: int, tz) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=tz)


def last_quarter_months(now: datetime) -> list[tuple[int, int]]:
    """(year, month) pairs of the quarter before the one containing ``now``."""
    quarter_start = (now.month - 1) // 3 * 3 - 3
    year = now.year
    if quarter_start < 0:
        quarter_start += 12
        year -= 1
    return [(year, quarter_start + 1 + i) for i in range(3)]


def resolve_range(period: Period, now: datetime, year_anchor: int = DEFAULT_YEAR_ANCHOR) -> DateRange:
    now = as_aware(now)
    tz = now.tzinfo

    if period == Period.current_month:
        return DateRange(month_start(now.year, now.month, tz), now, "Current Month")

    if period == Period.current_year:
        # Anchored to a fixed calendar year rather than now.year.
        start = min(datetime(year_anchor, 1, 1, tzinfo=tz), now)
        return DateRange(start, now, f"Year {year_anchor} to Date")

    if period == Period.last_month:
        year, month = shift_month(now.year, now.month, -1)
        return DateRange(month_start(year, month, tz), month_end(year, month, tz), "Last Month")

    if period == Period.last_quarter:
        months = last_quarter_months(now)
        first_year, first_month = months[0]
        end_year, end_month = months[-1]
        return DateRange(
            month_start(first_year, first_month, tz),
            min(month_end(end_year, end_month, tz), now),
            "Last Quarter",
        )

    if period == Period.last_year:
        year = now.year - 1
        return DateRange(month_start(year, 1, tz), month_end(year, 12, tz), "Last Year")

    return DateRange(month_start(now.year, now.month, tz), now, "Custom")


def filter_by_range(records: Iterable[T], date_range: DateRange) -> list[T]:
    out: list[T] = []
    for record in records:
        if record.created_at is None:
            continue
        if date_range.contains(as_aware(record.created_at)):
            out.append(record)
    return out
