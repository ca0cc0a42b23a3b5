from botocore.exceptions import BotoCoreError, ClientError
import logging
from typing import Optional, List
from boto3.dynamodb.conditions import Key
from roombook.models.bookings import (
    Booking,
    BookingStatus,
    BookedSlot,
    PartitionSnapshot,
    PaymentStatus,
)
from roombook.models.intervals import FULL_DAY, TimeInterval
from roombook.utils.constants import DETAILS_SK, LOCK_SK
from roombook.utils.custom_exceptions import (
    AlreadyCancelled,
    PartitionChanged,
    StoreUnavailable,
)
from roombook.utils.datetime_normaliser import (
    format_time,
    from_iso_string,
    parse_date,
    parse_time,
    to_iso_string,
)
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types_boto3_dynamodb.service_resource import Table
    from types_boto3_dynamodb import DynamoDBClient
else:
    Table = object
    DynamoDBClient = object


logger = logging.getLogger(__name__)

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailed"
TRANSACTION_CONFLICT = "TransactionConflict"
TRANSACTION_CANCELED = "TransactionCanceledException"


def partition_pk(room_id: str, booking_date: date) -> str:
    return f"ROOM#{room_id}#DATE#{booking_date.isoformat()}"


def slot_sk(interval: TimeInterval, booking_id: str) -> str:
    return f"SLOT#{format_time(interval.start)}#{booking_id}"


def _cancellation_codes(err: ClientError) -> List[Optional[str]]:
    """Per-item rejection codes of a cancelled transaction, in item order.

    Items that were not the cause are reported as ``None``. Empty when the
    error is not a cancelled transaction.
    """
    if err.response.get("Error", {}).get("Code") != TRANSACTION_CANCELED:
        return []
    codes = []
    for reason in err.response.get("CancellationReasons") or []:
        code = reason.get("Code")
        codes.append(code if code and code != "None" else None)
    return codes


class BookingRepository:
    def __init__(self, table: Table, client: DynamoDBClient = None):
        self.table = table
        self.client = client if client else table.meta.client

    def get_partition(self, room_id: str, booking_date: date) -> PartitionSnapshot:
        """Strongly consistent read of every confirmed slot of a room/date."""
        pk = partition_pk(room_id, booking_date)
        version = 0
        slots = []
        query = {
            "KeyConditionExpression": Key("pk").eq(pk),
            "ConsistentRead": True,
        }
        try:
            while True:
                response = self.table.query(**query)
                for item in response.get("Items", []):
                    if item["sk"] == LOCK_SK:
                        version = int(item.get("version", 0))
                    elif item["sk"].startswith("SLOT#"):
                        slots.append(
                            BookedSlot(
                                booking_id=item["booking_id"],
                                interval=TimeInterval(
                                    parse_time(item["start_time"]),
                                    parse_time(item["end_time"]),
                                    FULL_DAY,
                                ),
                            )
                        )
                if "LastEvaluatedKey" not in response:
                    break
                query["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        except (ClientError, BotoCoreError) as err:
            logger.error(f"Error reading partition {pk}: {err}")
            raise StoreUnavailable(f"could not read bookings for {pk}") from err

        return PartitionSnapshot(
            room_id=room_id,
            booking_date=booking_date,
            version=version,
            slots=tuple(slots),
        )

    def add_booking(self, booking: Booking, expected_version: int):
        """Commit a confirmed booking in one transaction.

        The partition LOCK item is bumped from ``expected_version``; if any
        other writer committed since the snapshot was taken the whole
        transaction is rejected with ``PartitionChanged``.
        """
        pk = partition_pk(booking.room_id, booking.booking_date)
        if expected_version == 0:
            lock_condition = "attribute_not_exists(pk)"
            lock_values = {":next": 1}
        else:
            lock_condition = "#version = :expected"
            lock_values = {":next": expected_version + 1, ":expected": expected_version}

        slot_item = {
            "pk": pk,
            "sk": slot_sk(booking.interval, booking.booking_id),
            "booking_id": booking.booking_id,
            "user_id": booking.user_id,
            "start_time": format_time(booking.interval.start),
            "end_time": format_time(booking.interval.end),
        }

        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        "Update": {
                            "TableName": self.table.name,
                            "Key": {"pk": pk, "sk": LOCK_SK},
                            "UpdateExpression": "SET #version = :next",
                            "ExpressionAttributeNames": {"#version": "version"},
                            "ExpressionAttributeValues": lock_values,
                            "ConditionExpression": lock_condition,
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": self._to_item(booking),
                            "ConditionExpression": "attribute_not_exists(pk)",
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": self._to_user_item(booking),
                        }
                    },
                    {
                        "Put": {
                            "TableName": self.table.name,
                            "Item": slot_item,
                            "ConditionExpression": "attribute_not_exists(sk)",
                        }
                    },
                ]
            )
        except ClientError as err:
            codes = _cancellation_codes(err)
            # a racing writer on the LOCK item means the snapshot is stale
            if CONDITIONAL_CHECK_FAILED in codes or TRANSACTION_CONFLICT in codes:
                logger.info(
                    f"Partition {pk} changed while creating booking {booking.booking_id}"
                )
                raise PartitionChanged(f"partition {pk} changed") from err
            logger.error(f"Error creating booking {booking.booking_id}: {err}")
            raise StoreUnavailable("could not store booking") from err
        except BotoCoreError as err:
            logger.error(f"Error creating booking {booking.booking_id}: {err}")
            raise StoreUnavailable("could not store booking") from err

    def cancel_booking(self, booking: Booking, cancelled_at: datetime):
        """Mark a confirmed booking cancelled/refunded and release its slot.

        Guarded by ``booking_status = CONFIRMED`` so that of two racing
        cancels only one commits; the other gets ``AlreadyCancelled``.
        """
        cancelled_iso = to_iso_string(cancelled_at)
        values = {
            ":cancelled": BookingStatus.CANCELLED.value,
            ":refunded": PaymentStatus.REFUNDED.value,
            ":cancelled_at": cancelled_iso,
        }
        set_expression = (
            "SET #booking_status = :cancelled, "
            "#payment_status = :refunded, "
            "#cancelled_at = :cancelled_at"
        )
        names = {
            "#booking_status": "booking_status",
            "#payment_status": "payment_status",
            "#cancelled_at": "cancelled_at",
        }

        try:
            self.client.transact_write_items(
                TransactItems=[
                    {
                        "Update": {
                            "TableName": self.table.name,
                            "Key": {"pk": f"BOOKING#{booking.booking_id}", "sk": DETAILS_SK},
                            "UpdateExpression": set_expression,
                            "ExpressionAttributeNames": {**names, "#user_id": "user_id"},
                            "ExpressionAttributeValues": {
                                **values,
                                ":confirmed": BookingStatus.CONFIRMED.value,
                                ":user_id": booking.user_id,
                            },
                            "ConditionExpression": (
                                "#booking_status = :confirmed AND #user_id = :user_id"
                            ),
                        }
                    },
                    {
                        "Update": {
                            "TableName": self.table.name,
                            "Key": {
                                "pk": f"USER#{booking.user_id}",
                                "sk": f"BOOKING#{booking.booking_id}",
                            },
                            "UpdateExpression": set_expression,
                            "ExpressionAttributeNames": names,
                            "ExpressionAttributeValues": values,
                            "ConditionExpression": "attribute_exists(pk)",
                        }
                    },
                    {
                        "Delete": {
                            "TableName": self.table.name,
                            "Key": {
                                "pk": partition_pk(booking.room_id, booking.booking_date),
                                "sk": slot_sk(booking.interval, booking.booking_id),
                            },
                        }
                    },
                ]
            )
        except ClientError as err:
            codes = _cancellation_codes(err)
            details_code = codes[0] if codes else None
            if details_code == CONDITIONAL_CHECK_FAILED:
                raise AlreadyCancelled(booking.booking_id) from err
            if TRANSACTION_CONFLICT in codes:
                # another cancel is in flight; report its outcome if it landed
                current = self.get_booking_by_id(booking.booking_id)
                if current is not None and current.status == BookingStatus.CANCELLED:
                    raise AlreadyCancelled(booking.booking_id) from err
                logger.warning(
                    f"Cancel of booking {booking.booking_id} collided with another write"
                )
                raise StoreUnavailable("booking is being modified, try again") from err
            if CONDITIONAL_CHECK_FAILED in codes:
                logger.error(
                    f"User copy of booking {booking.booking_id} is missing, cancel aborted"
                )
                raise StoreUnavailable("booking records are inconsistent") from err
            logger.error(f"Error cancelling booking {booking.booking_id}: {err}")
            raise StoreUnavailable("could not cancel booking") from err
        except BotoCoreError as err:
            logger.error(f"Error cancelling booking {booking.booking_id}: {err}")
            raise StoreUnavailable("could not cancel booking") from err

    def get_user_bookings(self, user_id: str) -> List[Booking]:
        """All bookings of a user, newest first."""
        query = {
            "KeyConditionExpression": Key("pk").eq(f"USER#{user_id}")
            & Key("sk").begins_with("BOOKING#"),
        }
        items = []
        try:
            while True:
                response = self.table.query(**query)
                items.extend(response.get("Items", []))
                if "LastEvaluatedKey" not in response:
                    break
                query["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        except (ClientError, BotoCoreError) as err:
            logger.error(f"Error retrieving user {user_id} bookings: {err}")
            raise StoreUnavailable("could not list bookings") from err

        bookings = [
            self._to_domain(item, booking_id=item["sk"].removeprefix("BOOKING#"))
            for item in items
        ]
        bookings.sort(key=lambda b: b.created_at, reverse=True)
        return bookings

    def get_booking_by_id(self, booking_id: str) -> Optional[Booking]:
        try:
            response = self.table.get_item(
                Key={"pk": f"BOOKING#{booking_id}", "sk": DETAILS_SK},
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as err:
            logger.error(f"Error retrieving booking {booking_id}: {err}")
            raise StoreUnavailable("could not read booking") from err

        item = response.get("Item")
        if not item:
            return None
        return self._to_domain(item, booking_id=booking_id)

    @staticmethod
    def _attributes(booking: Booking) -> dict:
        return {
            "user_id": booking.user_id,
            "room_id": booking.room_id,
            "booking_date": booking.booking_date.isoformat(),
            "start_time": format_time(booking.interval.start),
            "end_time": format_time(booking.interval.end),
            "total_hours": Decimal(str(booking.total_hours)),
            "total_amount": Decimal(str(booking.total_amount)),
            "booking_status": booking.status.value,
            "payment_status": booking.payment_status.value,
            "receipt_token": booking.receipt_token,
            "created_at": to_iso_string(booking.created_at),
        }

    def _to_item(self, booking: Booking) -> dict:
        return {
            "pk": f"BOOKING#{booking.booking_id}",
            "sk": DETAILS_SK,
            **self._attributes(booking),
        }

    def _to_user_item(self, booking: Booking) -> dict:
        return {
            "pk": f"USER#{booking.user_id}",
            "sk": f"BOOKING#{booking.booking_id}",
            **self._attributes(booking),
        }

    @staticmethod
    def _to_domain(item: dict, booking_id: str) -> Booking:
        cancelled_at = item.get("cancelled_at")
        return Booking(
            booking_id=booking_id,
            user_id=item["user_id"],
            room_id=item["room_id"],
            booking_date=parse_date(item["booking_date"]),
            interval=TimeInterval(
                parse_time(item["start_time"]),
                parse_time(item["end_time"]),
                FULL_DAY,
            ),
            total_hours=Decimal(str(item["total_hours"])),
            total_amount=Decimal(str(item["total_amount"])),
            status=BookingStatus(item["booking_status"]),
            payment_status=PaymentStatus(item["payment_status"]),
            receipt_token=item.get("receipt_token", ""),
            created_at=from_iso_string(item["created_at"]),
            cancelled_at=from_iso_string(cancelled_at) if cancelled_at else None,
        )
