import logging
from boto3 import resource

from roombook.schemas.bookings import BookingRequest
from roombook.utils.bootstrap import build_booking_service, build_notifier, operating_window
from roombook.utils.custom_response import send_custom_response
from roombook.utils.custom_exceptions import BookingError
from roombook.utils.settings import Settings
from pydantic import ValidationError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

settings = Settings.from_env()
window = operating_window(settings)

dynamodb = resource("dynamodb", region_name=settings.region, config=settings.boto_config())
table = dynamodb.Table(settings.table_name)

notifier = build_notifier(settings)
booking_service = build_booking_service(table, settings, notifier=notifier)


def create_booking(event, context):
    if not event.get("body"):
        return send_custom_response(400, "Request body is required")

    try:
        request_body = BookingRequest.model_validate_json(event["body"])
    except ValidationError as e:
        formatted = "; ".join(f"{err['msg']}" for err in e.errors())
        return send_custom_response(400, formatted)

    try:
        user_id = event["requestContext"]["authorizer"]["user_id"]
    except KeyError:
        return send_custom_response(401, "Unauthorized")

    try:
        interval = request_body.to_interval(window)
        booking = booking_service.create_booking(
            user_id=user_id,
            room_id=request_body.room_id,
            booking_date=request_body.booking_date,
            interval=interval,
        )

        response = send_custom_response(201, "Booking created successfully", booking.to_dict())
        # the container may be frozen once we return
        notifier.flush(settings.notification_flush_seconds)
        return response

    except BookingError as err:
        return send_custom_response(err.status_code, str(err))

    except Exception:
        logger.exception("Unhandled error while creating booking")
        return send_custom_response(500, "Internal server error")
