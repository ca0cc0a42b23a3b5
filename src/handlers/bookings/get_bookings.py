import logging
from boto3 import resource

from roombook.utils.bootstrap import build_booking_service
from roombook.utils.custom_response import send_custom_response
from roombook.utils.custom_exceptions import BookingError
from roombook.utils.settings import Settings

logger = logging.getLogger()
logger.setLevel(logging.INFO)

settings = Settings.from_env()

dynamodb = resource("dynamodb", region_name=settings.region, config=settings.boto_config())
table = dynamodb.Table(settings.table_name)

booking_service = build_booking_service(table, settings)


def get_user_bookings(event, context):
    try:
        user_id = event["requestContext"]["authorizer"]["user_id"]
    except KeyError:
        return send_custom_response(401, "Unauthorized")

    try:
        bookings = booking_service.get_user_bookings(user_id)

        result = [b.to_dict() for b in bookings]
        return send_custom_response(
            200,
            "Bookings retrieved successfully",
            {
                "count": len(result),
                "bookings": result,
            },
        )

    except BookingError as err:
        return send_custom_response(err.status_code, str(err))

    except Exception:
        logger.exception("Unhandled error while listing bookings")
        return send_custom_response(500, "Internal server error")
