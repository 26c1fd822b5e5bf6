class BookingError(Exception):
    """
    Base for every user-facing booking failure.

    ``public_message`` is what the caller sees; ``str(exc)`` may carry more
    detail for logs.
    """
    status_code = 400
    public_message = "Booking request failed"

    def __init__(self, message=None, public_message=None):
        super().__init__(message or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message
        elif message is not None:
            self.public_message = message


class ValidationError(BookingError):
    status_code = 400
    public_message = "Invalid booking request"


class CapacityExceeded(BookingError):
    status_code = 409
    public_message = "This slot is no longer available"


class NotFound(BookingError):
    status_code = 404
    public_message = "Booking not found"


class InvalidToken(BookingError):
    # Same response as NotFound so callers cannot tell which check failed
    status_code = 404
    public_message = NotFound.public_message

    def __init__(self, message="Invalid approval token"):
        super().__init__(message, public_message=NotFound.public_message)


class AlreadyDecided(BookingError):
    status_code = 409
    public_message = "Booking has already been decided"

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Booking is already {status}")


class DependencyFailure(BookingError):
    status_code = 503
    public_message = "Service temporarily unavailable"

    def __init__(self, message="Storage failure"):
        super().__init__(message, public_message=DependencyFailure.public_message)
