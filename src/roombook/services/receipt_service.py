"""Booking receipt tokens.

A receipt is a plain-text token meant to be printed as a QR code and scanned
at the front desk::

    ROOMBOOK:v1:<booking_id>:<room_name>:<YYYY-MM-DD>:<HH:MM>-<HH:MM>:<contact>

Every field is percent-encoded so the ``:`` separator never appears inside a
field. ``<contact>`` is the guest email when ``include_email`` is set,
otherwise a truncated SHA-256 of it so the code carries no readable PII.
"""
import hashlib
import io
from dataclasses import dataclass
from datetime import date
from urllib.parse import quote, unquote

import qrcode

from roombook.models.bookings import Booking
from roombook.models.intervals import FULL_DAY, TimeInterval
from roombook.models.rooms import Room
from roombook.models.users import User
from roombook.utils.constants import RECEIPT_PREFIX, RECEIPT_VERSION
from roombook.utils.custom_exceptions import InvalidInterval, InvalidReceipt
from roombook.utils.datetime_normaliser import format_time, parse_time

SEPARATOR = ":"
FIELD_COUNT = 7
HASH_PREFIX = "sha256:"
HASH_LENGTH = 16


def _enc(value: str) -> str:
    return quote(value, safe="")


@dataclass(frozen=True)
class ReceiptPayload:
    version: str
    booking_id: str
    room_name: str
    booking_date: date
    interval: TimeInterval
    contact: str


def contact_digest(email: str) -> str:
    digest = hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()
    return f"{HASH_PREFIX}{digest[:HASH_LENGTH]}"


def parse_receipt(token: str) -> ReceiptPayload:
    parts = token.split(SEPARATOR)
    if len(parts) != FIELD_COUNT or parts[0] != RECEIPT_PREFIX:
        raise InvalidReceipt("not a booking receipt")
    _, version, booking_id, room_name, day, time_range, contact = parts
    if version != RECEIPT_VERSION:
        raise InvalidReceipt(f"unsupported receipt version '{version}'")

    try:
        start, end = time_range.split("-")
        interval = TimeInterval(
            parse_time(unquote(start)), parse_time(unquote(end)), FULL_DAY
        )
        booking_date = date.fromisoformat(unquote(day))
    except (ValueError, InvalidInterval) as err:
        raise InvalidReceipt("malformed receipt") from err

    booking_id = unquote(booking_id)
    if not booking_id:
        raise InvalidReceipt("receipt has no booking id")

    return ReceiptPayload(
        version=version,
        booking_id=booking_id,
        room_name=unquote(room_name),
        booking_date=booking_date,
        interval=interval,
        contact=unquote(contact),
    )


class ReceiptService:
    def __init__(self, include_email: bool = False):
        self.include_email = include_email

    def _contact(self, user: User) -> str:
        if self.include_email:
            return user.email.strip().lower()
        return contact_digest(user.email)

    def generate(self, booking: Booking, room: Room, user: User) -> str:
        fields = [
            RECEIPT_PREFIX,
            RECEIPT_VERSION,
            _enc(booking.booking_id),
            _enc(room.name),
            _enc(booking.booking_date.isoformat()),
            f"{_enc(format_time(booking.interval.start))}-{_enc(format_time(booking.interval.end))}",
            _enc(self._contact(user)),
        ]
        return SEPARATOR.join(fields)

    def parse(self, token: str) -> ReceiptPayload:
        return parse_receipt(token)

    def render_qr_png(self, token: str) -> bytes:
        img = qrcode.make(token)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
