from datetime import datetime, timezone, date, time

from roombook.utils.constants import TIME_FORMAT


def from_iso_string(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        raise ValueError("Stored datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def to_iso_string(dt: datetime) -> str:
    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return dt.astimezone(timezone.utc).isoformat()


def parse_time(value: str) -> time:
    return datetime.strptime(value, TIME_FORMAT).time()


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def parse_date(value: str) -> date:
    return date.fromisoformat(value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
