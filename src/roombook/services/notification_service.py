from concurrent.futures import Future, ThreadPoolExecutor, wait
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import threading
from typing import Optional, Protocol, Set

import boto3

from roombook.models.bookings import Booking
from roombook.models.rooms import Room
from roombook.models.users import User
from roombook.services.receipt_service import ReceiptService
from roombook.utils.datetime_normaliser import format_time

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def notify_confirmed(self, booking: Booking, user: User, room: Room) -> None: ...

    def notify_cancelled(self, booking: Booking, user: User, room: Room) -> None: ...


class EmailNotificationService:
    def __init__(
        self,
        sender: str,
        receipt_service: Optional[ReceiptService] = None,
        ses_client=None,
        region: Optional[str] = None,
    ):
        self.sender = sender
        self.receipt_service = receipt_service or ReceiptService()
        self.ses = ses_client if ses_client else boto3.client("ses", region_name=region)

    def _send(self, msg: MIMEMultipart, recipient: str):
        msg["From"] = self.sender
        msg["To"] = recipient
        self.ses.send_raw_email(
            Source=self.sender,
            Destinations=[recipient],
            RawMessage={"Data": msg.as_string()},
        )

    def notify_confirmed(self, booking: Booking, user: User, room: Room):
        msg = MIMEMultipart("related")
        msg["Subject"] = f"Booking Confirmed - {room.name}"

        body = f"""
            Hello {user.name},

            Your booking is confirmed.

            Booking ID: {booking.booking_id}
            Room: {room.name}
            Date: {booking.booking_date.isoformat()}
            Time: {format_time(booking.interval.start)} - {format_time(booking.interval.end)}
            Duration: {booking.total_hours} hour(s)
            Total Amount: ₹{booking.total_amount}

            Show the attached QR code at the front desk.
            Receipt: {booking.receipt_token}
            """
        msg.attach(MIMEText(body, "plain"))

        qr = MIMEImage(self.receipt_service.render_qr_png(booking.receipt_token), "png")
        qr.add_header("Content-ID", "<booking-qr>")
        qr.add_header(
            "Content-Disposition", "attachment", filename=f"booking-{booking.booking_id}.png"
        )
        msg.attach(qr)

        self._send(msg, user.email)
        logger.info(f"Sent confirmation for booking {booking.booking_id}")

    def notify_cancelled(self, booking: Booking, user: User, room: Room):
        msg = MIMEMultipart()
        msg["Subject"] = f"Booking Cancelled - {room.name}"

        body = f"""
            Hello {user.name},

            Your booking {booking.booking_id} for {room.name} on
            {booking.booking_date.isoformat()} ({format_time(booking.interval.start)} - {format_time(booking.interval.end)})
            has been cancelled.

            A refund of ₹{booking.total_amount} has been issued.
            """
        msg.attach(MIMEText(body, "plain"))

        self._send(msg, user.email)
        logger.info(f"Sent cancellation for booking {booking.booking_id}")


class NotificationDispatcher:
    """Runs sink calls on a worker pool; delivery errors are logged, never raised."""

    def __init__(self, sink: NotificationSink, executor: Optional[ThreadPoolExecutor] = None, max_workers: int = 2):
        self.sink = sink
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notify"
        )
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()

    def _submit(self, event: str, fn, booking: Booking, user: User, room: Room) -> Optional[Future]:
        try:
            future = self.executor.submit(fn, booking, user, room)
        except RuntimeError:
            logger.exception(f"Could not queue {event} notification for {booking.booking_id}")
            return None

        with self._pending_lock:
            self._pending.add(future)

        def _done(f: Future):
            with self._pending_lock:
                self._pending.discard(f)
            err = f.exception()
            if err is not None:
                logger.error(
                    f"{event} notification for booking {booking.booking_id} failed: {err}",
                    exc_info=err,
                )

        future.add_done_callback(_done)
        return future

    def booking_confirmed(self, booking: Booking, user: User, room: Room) -> Optional[Future]:
        return self._submit("confirmed", self.sink.notify_confirmed, booking, user, room)

    def booking_cancelled(self, booking: Booking, user: User, room: Room) -> Optional[Future]:
        return self._submit("cancelled", self.sink.notify_cancelled, booking, user, room)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued deliveries, e.g. before a Lambda invocation returns
        and the container is frozen. Returns False if some are still running."""
        with self._pending_lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        if not_done:
            logger.warning(f"{len(not_done)} notification(s) still in flight after {timeout}s")
        return not not_done

    def shutdown(self, wait: bool = True):
        self.executor.shutdown(wait=wait)
