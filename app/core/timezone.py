"""Business-day helpers.

All reconciliation queries are scoped to one calendar day in the business
timezone (UTC-03:00, America/Sao_Paulo has no daylight saving time). Naive
datetimes coming from the field app are UTC by contract.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import NamedTuple, Optional

BUSINESS_TZ = timezone(timedelta(hours=-3), "America/Sao_Paulo")

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class DayRange(NamedTuple):
    start: datetime
    end: datetime


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_date_input(value: str) -> datetime:
    raw = (value or "").strip()
    if not raw:
        raise ValueError("Data nao informada")
    if _DATE_ONLY.match(raw):
        parsed = date.fromisoformat(raw)
        return datetime(parsed.year, parsed.month, parsed.day, tzinfo=BUSINESS_TZ)
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed_dt = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"Data invalida: {value}") from exc
    return _as_aware(parsed_dt)


def day_range(instant: datetime) -> DayRange:
    local = _as_aware(instant).astimezone(BUSINESS_TZ)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    end = local.replace(hour=23, minute=59, second=59, microsecond=999000)
    return DayRange(start, end)


def business_today(now: Optional[datetime] = None) -> datetime:
    """Start of the current business day."""
    return day_range(now or datetime.now(timezone.utc)).start


def to_db_datetime(value: datetime) -> datetime:
    return _as_aware(value).astimezone(timezone.utc).replace(tzinfo=None)


def date_label(value: datetime) -> str:
    return _as_aware(value).astimezone(BUSINESS_TZ).date().isoformat()
