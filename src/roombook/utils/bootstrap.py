from typing import Optional

from roombook.models.intervals import OperatingWindow
from roombook.repository.booking_repo import BookingRepository
from roombook.repository.room_repo import RoomRepository
from roombook.repository.user_repo import UserRepository
from roombook.services.booking_service import BookingService
from roombook.services.notification_service import (
    EmailNotificationService,
    NotificationDispatcher,
)
from roombook.services.partition_lock import PartitionLocks
from roombook.services.receipt_service import ReceiptService
from roombook.utils.settings import Settings


def build_booking_service(
    table, settings: Settings, notifier: Optional[NotificationDispatcher] = None
) -> BookingService:
    receipt_service = ReceiptService(include_email=settings.receipt_include_email)
    return BookingService(
        booking_repo=BookingRepository(table),
        user_repo=UserRepository(table),
        room_repo=RoomRepository(table),
        receipt_service=receipt_service,
        notifier=notifier,
        locks=PartitionLocks(timeout=settings.lock_timeout_seconds),
        max_commit_attempts=settings.max_commit_attempts,
        window=operating_window(settings),
    )


def build_notifier(settings: Settings, receipt_service: Optional[ReceiptService] = None) -> NotificationDispatcher:
    sink = EmailNotificationService(
        sender=settings.sender_email,
        receipt_service=receipt_service or ReceiptService(settings.receipt_include_email),
        region=settings.region,
    )
    return NotificationDispatcher(sink, max_workers=settings.notification_workers)


def operating_window(settings: Settings) -> OperatingWindow:
    return OperatingWindow.parse(settings.operating_hours)
