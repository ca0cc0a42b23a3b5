DEFAULT_OPERATING_HOURS = "09:00-21:00"
DEFAULT_REGION = "ap-south-1"

TIME_FORMAT = "%H:%M"

RECEIPT_PREFIX = "ROOMBOOK"
RECEIPT_VERSION = "v1"

LOCK_SK = "LOCK"
DETAILS_SK = "DETAILS"
