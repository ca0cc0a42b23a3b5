from dataclasses import dataclass, field
from datetime import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from roombook.utils.constants import DEFAULT_OPERATING_HOURS
from roombook.utils.custom_exceptions import InvalidInterval
from roombook.utils.datetime_normaliser import format_time, parse_time

HOURS_QUANTUM = Decimal("0.01")
MINUTES_PER_HOUR = Decimal(60)


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _parse(value: str, label: str) -> time:
    try:
        return parse_time(value)
    except (TypeError, ValueError) as err:
        raise InvalidInterval(f"{label} '{value}' is not a valid HH:MM time") from err


@dataclass(frozen=True)
class OperatingWindow:
    opens: time
    closes: time

    def __post_init__(self):
        if self.opens >= self.closes:
            raise ValueError("operating window must open before it closes")

    @classmethod
    def parse(cls, value: str) -> "OperatingWindow":
        try:
            opens, closes = value.split("-", 1)
            return cls(parse_time(opens.strip()), parse_time(closes.strip()))
        except ValueError as err:
            raise ValueError(f"invalid operating hours '{value}'") from err

    def contains(self, value: time) -> bool:
        return self.opens <= value <= self.closes

    def __str__(self):
        return f"{format_time(self.opens)}-{format_time(self.closes)}"


DEFAULT_WINDOW = OperatingWindow.parse(DEFAULT_OPERATING_HOURS)
# used when rehydrating stored bookings made under different operating hours
FULL_DAY = OperatingWindow(time(0, 0), time(23, 59))


@dataclass(frozen=True)
class TimeInterval:
    """Half-open time-of-day range ``[start, end)`` inside an operating window."""

    start: time
    end: time
    window: Optional[OperatingWindow] = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self):
        if self.start.second or self.end.second or self.start.microsecond or self.end.microsecond:
            raise InvalidInterval("times must be whole minutes")
        if self.start >= self.end:
            raise InvalidInterval(
                f"start {format_time(self.start)} must be before end {format_time(self.end)}"
            )
        window = self.window or DEFAULT_WINDOW
        if not window.contains(self.start) or not window.contains(self.end):
            raise InvalidInterval(
                f"{self} falls outside operating hours {window}"
            )

    @classmethod
    def parse(
        cls, start: str, end: str, window: Optional[OperatingWindow] = None
    ) -> "TimeInterval":
        return cls(_parse(start, "start time"), _parse(end, "end time"), window)

    @property
    def minutes(self) -> int:
        return _minutes(self.end) - _minutes(self.start)

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self, other)

    def duration(self) -> Decimal:
        return duration(self)

    def __str__(self):
        return f"{format_time(self.start)}-{format_time(self.end)}"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    # touching bounds (10:00 end, 10:00 start) are not an overlap
    return a.start < b.end and b.start < a.end


def duration(interval: TimeInterval) -> Decimal:
    minutes = interval.minutes
    if minutes <= 0:
        raise InvalidInterval(f"interval {interval} has no duration")
    return (Decimal(minutes) / MINUTES_PER_HOUR).quantize(
        HOURS_QUANTUM, rounding=ROUND_HALF_UP
    )
