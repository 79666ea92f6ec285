"""Reporting-clock helpers.

Timestamps are stored as naive UTC. Every report that buckets by day or
month does so in one configured reporting timezone, so a sale made at
23:50 local time belongs to that local day regardless of where the
server runs.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from stockbook.core.config import settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def reporting_zone(name: str | None = None) -> ZoneInfo:
    zone_name = name or settings.reporting_timezone
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown reporting timezone: {zone_name}") from exc


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive input is taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_local(value: datetime, tz: ZoneInfo | None = None) -> datetime:
    return as_utc(value).astimezone(tz or reporting_zone())


def local_today(now: datetime | None = None, tz: ZoneInfo | None = None) -> date:
    return to_local(now or utc_now(), tz).date()


def local_midnight_utc(day: date, tz: ZoneInfo | None = None) -> datetime:
    """UTC instant (naive) at which ``day`` starts in the reporting timezone."""
    local_start = datetime.combine(day, time.min, tzinfo=tz or reporting_zone())
    return local_start.astimezone(timezone.utc).replace(tzinfo=None)


def local_date_range_utc(date_from: date, date_to: date, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    """Half-open UTC range covering local days ``date_from`` .. ``date_to`` inclusive."""
    zone = tz or reporting_zone()
    return local_midnight_utc(date_from, zone), local_midnight_utc(date_to + timedelta(days=1), zone)


def month_start(day: date) -> date:
    return date(day.year, day.month, 1)


def add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_range_utc(first_day: date, tz: ZoneInfo | None = None) -> tuple[datetime, datetime]:
    zone = tz or reporting_zone()
    start = month_start(first_day)
    return local_midnight_utc(start, zone), local_midnight_utc(add_months(start, 1), zone)


def trailing_months(months: int, now: datetime | None = None, tz: ZoneInfo | None = None) -> list[date]:
    """First days of the last ``months`` calendar months, oldest first, ending with the current one."""
    current = month_start(local_today(now, tz))
    return [add_months(current, offset) for offset in range(-(months - 1), 1)]


def month_label(first_day: date) -> str:
    return first_day.strftime("%b %Y")
