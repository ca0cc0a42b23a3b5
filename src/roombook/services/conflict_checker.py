from datetime import date
from typing import Iterable, Optional

from roombook.models.bookings import BookedSlot, PartitionSnapshot
from roombook.models.intervals import TimeInterval, overlaps
from roombook.repository.booking_repo import BookingRepository


def find_conflict(
    slots: Iterable[BookedSlot], interval: TimeInterval
) -> Optional[BookedSlot]:
    for slot in slots:
        if overlaps(slot.interval, interval):
            return slot
    return None


class ConflictChecker:
    """Read-only overlap check against a room/date partition."""

    def __init__(self, booking_repo: BookingRepository):
        self.booking_repo = booking_repo

    def snapshot(self, room_id: str, booking_date: date) -> PartitionSnapshot:
        return self.booking_repo.get_partition(room_id, booking_date)

    def find_conflict(
        self, room_id: str, booking_date: date, interval: TimeInterval
    ) -> Optional[BookedSlot]:
        return find_conflict(self.snapshot(room_id, booking_date).slots, interval)
