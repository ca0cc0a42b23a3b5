class BookingError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message or self.__class__.__name__


class NotFoundException(BookingError):
    def __init__(self, resource: str, identifier: str, status_code: int = 404):
        self.resource = resource
        self.identifier = identifier
        self.status_code = status_code
        super().__init__(f"{resource} '{identifier}' not found")


class InvalidInterval(BookingError):
    status_code = 400


class RoomNotFound(NotFoundException):
    def __init__(self, room_id: str):
        super().__init__("room", room_id, 404)


class UserNotFound(NotFoundException):
    def __init__(self, user_id: str):
        super().__init__("user", user_id, 404)


class BookingNotFound(NotFoundException):
    def __init__(self, booking_id: str):
        super().__init__("booking", booking_id, 404)


class SlotConflict(BookingError):
    status_code = 409

    def __init__(self, room_id: str, booking_date, conflicting_booking_id: str):
        self.room_id = room_id
        self.booking_date = booking_date
        self.conflicting_booking_id = conflicting_booking_id
        super().__init__(
            f"room '{room_id}' is already booked on {booking_date} for this time slot"
        )


class AlreadyCancelled(BookingError):
    status_code = 409

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"booking '{booking_id}' is already cancelled")


class StoreUnavailable(BookingError):
    status_code = 503
    retryable = True


class PartitionChanged(BookingError):
    """Raised when another writer committed to the same room/date partition
    between the snapshot read and the write."""

    status_code = 409


class InvalidReceipt(BookingError):
    status_code = 400


class AuthError(BookingError):
    status_code = 401
