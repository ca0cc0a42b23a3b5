from roombook.repository.booking_repo import BookingRepository
from roombook.repository.room_repo import RoomRepository
from roombook.repository.user_repo import UserRepository
from roombook.models.bookings import Booking, BookingStatus, PaymentStatus
from roombook.models.intervals import MINUTES_PER_HOUR, OperatingWindow, TimeInterval, duration
from roombook.models.rooms import Room
from roombook.services.conflict_checker import ConflictChecker, find_conflict
from roombook.services.notification_service import NotificationDispatcher
from roombook.services.partition_lock import PartitionLocks
from roombook.services.receipt_service import ReceiptService
from roombook.utils.custom_exceptions import (
    AlreadyCancelled,
    BookingNotFound,
    InvalidInterval,
    PartitionChanged,
    RoomNotFound,
    SlotConflict,
    StoreUnavailable,
    UserNotFound,
)
from roombook.utils.datetime_normaliser import utc_now
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)

AMOUNT_QUANTUM = Decimal("0.01")


class BookingService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        user_repo: UserRepository,
        room_repo: RoomRepository,
        receipt_service: Optional[ReceiptService] = None,
        notifier: Optional[NotificationDispatcher] = None,
        locks: Optional[PartitionLocks] = None,
        max_commit_attempts: int = 3,
        window: Optional[OperatingWindow] = None,
    ):
        self.booking_repo = booking_repo
        self.user_repo = user_repo
        self.room_repo = room_repo
        self.conflict_checker = ConflictChecker(booking_repo)
        self.receipt_service = receipt_service or ReceiptService()
        self.notifier = notifier
        self.locks = locks or PartitionLocks()
        self.max_commit_attempts = max_commit_attempts
        self.window = window

    def create_booking(
        self, user_id: str, room_id: str, booking_date: date, interval: TimeInterval
    ) -> Booking:
        if not isinstance(interval, TimeInterval):
            raise InvalidInterval("a time interval is required")
        if self.window and not (
            self.window.contains(interval.start) and self.window.contains(interval.end)
        ):
            raise InvalidInterval(f"{interval} falls outside operating hours {self.window}")
        total_hours = duration(interval)

        room = self.room_repo.get_room_by_id(room_id)
        if room is None:
            raise RoomNotFound(room_id)
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFound(user_id)

        total_amount = self._total_amount(room, interval)

        with self.locks.hold(room_id, booking_date):
            booking = self._commit(
                user_id, room, user, booking_date, interval, total_hours, total_amount
            )

        logger.info(
            f"Booking {booking.booking_id} confirmed for room {room_id} on {booking_date} {interval}"
        )
        booking.room = room
        booking.user = user
        if self.notifier:
            self.notifier.booking_confirmed(booking, user, room)
        return booking

    def _commit(
        self, user_id, room, user, booking_date, interval, total_hours, total_amount
    ) -> Booking:
        """Snapshot, check and write; re-run from the snapshot if the
        partition moved underneath us."""
        for attempt in range(1, self.max_commit_attempts + 1):
            snapshot = self.conflict_checker.snapshot(room.room_id, booking_date)
            conflict = find_conflict(snapshot.slots, interval)
            if conflict is not None:
                logger.info(
                    f"Slot conflict on room {room.room_id} {booking_date} {interval} "
                    f"with booking {conflict.booking_id}"
                )
                raise SlotConflict(room.room_id, booking_date, conflict.booking_id)

            booking = Booking(
                booking_id=str(uuid4()),
                user_id=user_id,
                room_id=room.room_id,
                booking_date=booking_date,
                interval=interval,
                total_hours=total_hours,
                total_amount=total_amount,
                status=BookingStatus.CONFIRMED,
                payment_status=PaymentStatus.COMPLETED,
                created_at=utc_now(),
            )
            booking.receipt_token = self.receipt_service.generate(booking, room, user)

            try:
                self.booking_repo.add_booking(booking, expected_version=snapshot.version)
                return booking
            except PartitionChanged:
                logger.info(
                    f"Partition room {room.room_id} {booking_date} changed, "
                    f"retrying ({attempt}/{self.max_commit_attempts})"
                )

        raise StoreUnavailable(
            f"room '{room.room_id}' on {booking_date} is under heavy contention, try again"
        )

    @staticmethod
    def _total_amount(room: Room, interval: TimeInterval) -> Decimal:
        # priced on exact minutes, rounded once; total_hours is for display
        exact = room.price_per_hour * Decimal(interval.minutes) / MINUTES_PER_HOUR
        return exact.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)

    def cancel_booking(self, user_id: str, booking_id: str) -> Booking:
        booking = self._get_owned(user_id, booking_id)
        if booking.status == BookingStatus.CANCELLED:
            raise AlreadyCancelled(booking_id)

        room = self.room_repo.get_room_by_id(booking.room_id)
        user = self.user_repo.get_by_id(user_id)

        cancelled_at = utc_now()
        self.booking_repo.cancel_booking(booking, cancelled_at)

        booking.status = BookingStatus.CANCELLED
        booking.payment_status = PaymentStatus.REFUNDED
        booking.cancelled_at = cancelled_at
        logger.info(f"Booking {booking_id} cancelled by user {user_id}")

        booking.room = room
        booking.user = user
        if self.notifier and room and user:
            self.notifier.booking_cancelled(booking, user, room)
        return booking

    def get_booking(self, user_id: str, booking_id: str) -> Booking:
        booking = self._get_owned(user_id, booking_id)
        booking.room = self.room_repo.get_room_by_id(booking.room_id)
        return booking

    def _get_owned(self, user_id: str, booking_id: str) -> Booking:
        booking = self.booking_repo.get_booking_by_id(booking_id)
        # a foreign booking looks exactly like a missing one
        if booking is None or booking.user_id != user_id:
            raise BookingNotFound(booking_id)
        return booking

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        bookings = self.booking_repo.get_user_bookings(user_id)
        rooms: Dict[str, Optional[Room]] = {}
        for booking in bookings:
            if booking.room_id not in rooms:
                rooms[booking.room_id] = self.room_repo.get_room_by_id(booking.room_id)
            booking.room = rooms[booking.room_id]
        return bookings

    def verify_receipt(self, user_id: str, token: str) -> Booking:
        """Resolve a scanned receipt to the caller's booking.

        Raises InvalidReceipt for a malformed token and BookingNotFound when it
        does not match a booking the caller owns.
        """
        payload = self.receipt_service.parse(token)
        booking = self._get_owned(user_id, payload.booking_id)
        if booking.receipt_token != token:
            raise BookingNotFound(payload.booking_id)
        booking.room = self.room_repo.get_room_by_id(booking.room_id)
        return booking
