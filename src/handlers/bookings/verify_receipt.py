import logging
from boto3 import resource

from roombook.schemas.bookings import ReceiptVerifyRequest
from roombook.utils.bootstrap import build_booking_service
from roombook.utils.custom_response import send_custom_response
from roombook.utils.custom_exceptions import BookingError
from roombook.utils.settings import Settings
from pydantic import ValidationError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

settings = Settings.from_env()

dynamodb = resource("dynamodb", region_name=settings.region, config=settings.boto_config())
table = dynamodb.Table(settings.table_name)

booking_service = build_booking_service(table, settings)


def verify_receipt(event, context):
    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    try:
        request_body = ReceiptVerifyRequest.model_validate_json(event["body"])
    except ValidationError as e:
        formatted = "; ".join(f"{err['msg']}" for err in e.errors())
        return send_custom_response(400, formatted)

    try:
        user_id = event["requestContext"]["authorizer"]["user_id"]
    except KeyError:
        return send_custom_response(401, "Unauthorized")

    try:
        booking = booking_service.verify_receipt(user_id, request_body.token)
        message = "Receipt is valid" if booking.is_confirmed else "Booking for this receipt was cancelled"
        return send_custom_response(
            200,
            message,
            {"valid": booking.is_confirmed, "booking": booking.to_dict()},
        )

    except BookingError as err:
        return send_custom_response(err.status_code, str(err))

    except Exception:
        logger.exception("Unhandled error while verifying receipt")
        return send_custom_response(500, "Internal server error")
