from fastapi import status


class BookingError(Exception):
    """Base for every business rule rejection raised by the reservation engine."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request rejected"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BookingError):
    default_detail = "Invalid request data"


class LeadTimeError(BookingError):
    default_detail = "Reservations must be made at least 30 minutes in advance"


class DailyLimitExceeded(BookingError):
    default_detail = "Maximum reservations reached for the day"


class SlotConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This time slot is already booked"


class ForbiddenError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized"


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InvalidTransitionError(BookingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Reservation cannot change to the requested status"


class CheckInWindowError(InvalidTransitionError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Check-in opens 15 minutes before the reservation starts"


class CheckInDeadlineError(InvalidTransitionError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Check-in deadline has passed. Reservation marked as no-show."
