from enum import Enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from roombook.models.intervals import TimeInterval
from roombook.models.rooms import Room
from roombook.models.users import User
from roombook.utils.datetime_normaliser import format_time


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"


@dataclass
class Booking:
    booking_id: str
    user_id: str
    room_id: str
    booking_date: date
    interval: TimeInterval
    total_hours: Decimal
    total_amount: Decimal
    receipt_token: str = ""
    status: BookingStatus = BookingStatus.CONFIRMED
    payment_status: PaymentStatus = PaymentStatus.COMPLETED

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    cancelled_at: Optional[datetime] = None

    room: Optional[Room] = None
    user: Optional[User] = None

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    def to_dict(self) -> dict:
        return {
            "booking_id": self.booking_id,
            "user_id": self.user_id,
            "room_id": self.room_id,
            "booking_date": self.booking_date.isoformat(),
            "start_time": format_time(self.interval.start),
            "end_time": format_time(self.interval.end),
            "total_hours": self.total_hours,
            "total_amount": self.total_amount,
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "receipt_token": self.receipt_token,
            "created_at": self.created_at.isoformat(),
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "room": self.room.summary() if self.room else None,
            "user": self.user.summary() if self.user else None,
        }


@dataclass(frozen=True)
class BookedSlot:
    """A confirmed booking's footprint inside a room/date partition."""

    booking_id: str
    interval: TimeInterval


@dataclass(frozen=True)
class PartitionSnapshot:
    room_id: str
    booking_date: date
    version: int
    slots: tuple = ()
