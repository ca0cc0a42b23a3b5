from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from roombook.models.intervals import HOURS_QUANTUM, MINUTES_PER_HOUR, OperatingWindow, TimeInterval

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class BookingRequest(BaseModel):
    room_id: str = Field(min_length=1)
    booking_date: date
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    # optional client echo of the duration; must agree with the times
    total_hours: Optional[Decimal] = None

    @field_validator("booking_date")
    @classmethod
    def validate_not_in_past(cls, v: date):
        if v < datetime.now(timezone.utc).date():
            raise ValueError("booking_date cannot be in the past")
        return v

    @model_validator(mode="after")
    def validate_total_hours(self):
        if self.total_hours is None:
            return self
        minutes = _minutes(self.end_time) - _minutes(self.start_time)
        if minutes <= 0:
            # ordering is reported by the interval itself
            return self
        expected = (Decimal(minutes) / MINUTES_PER_HOUR).quantize(
            HOURS_QUANTUM, rounding=ROUND_HALF_UP
        )
        if self.total_hours.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP) != expected:
            raise ValueError(
                f"total_hours {self.total_hours} does not match "
                f"{self.start_time}-{self.end_time} ({expected} hours)"
            )
        return self

    def to_interval(self, window: Optional[OperatingWindow] = None) -> TimeInterval:
        """Raises InvalidInterval when the range is outside operating hours."""
        return TimeInterval.parse(self.start_time, self.end_time, window)


class ReceiptVerifyRequest(BaseModel):
    token: str = Field(min_length=1)

    @field_validator("token")
    @classmethod
    def strip_token(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("token must not be blank")
        return v
