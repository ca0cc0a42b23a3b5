import logging
from boto3 import resource

from roombook.utils.bootstrap import build_booking_service, build_notifier
from roombook.utils.custom_response import send_custom_response
from roombook.utils.custom_exceptions import BookingError
from roombook.utils.settings import Settings

logger = logging.getLogger()
logger.setLevel(logging.INFO)

settings = Settings.from_env()

dynamodb = resource("dynamodb", region_name=settings.region, config=settings.boto_config())
table = dynamodb.Table(settings.table_name)

notifier = build_notifier(settings)
booking_service = build_booking_service(table, settings, notifier=notifier)


def cancel_booking(event, context):
    try:
        user_id = event["requestContext"]["authorizer"]["user_id"]
    except KeyError:
        return send_custom_response(401, "Unauthorized")

    booking_id = (event.get("pathParameters") or {}).get("booking_id")
    if not booking_id:
        return send_custom_response(400, "booking_id is required")

    try:
        booking = booking_service.cancel_booking(user_id, booking_id)
        response = send_custom_response(200, "Booking cancelled successfully", booking.to_dict())
        notifier.flush(settings.notification_flush_seconds)
        return response

    except BookingError as err:
        return send_custom_response(err.status_code, str(err))

    except Exception:
        logger.exception(f"Unhandled error while cancelling booking {booking_id}")
        return send_custom_response(500, "Internal server error")
