"""
Errores del flujo de reservas.

Cada error lleva el título y el mensaje que se le muestra al usuario.
Los routers los convierten en HTTPException con ese payload.
"""

from fastapi import HTTPException


class BookingError(ValueError):
    code = "BookingError"
    title = "Booking Failed"
    status_code = 400
    default_message = "There was an issue processing your booking."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={"error": self.code, "title": self.title, "message": self.message},
        )


class SlotUnavailable(BookingError):
    code = "SlotUnavailable"
    status_code = 409

    def __init__(self, display_time: str = None, message: str = None):
        self.display_time = display_time
        if message is None and display_time:
            message = (
                f"The slot at {display_time} is no longer available. "
                "Please try again."
            )
        super().__init__(message)


class NonContiguousSlots(BookingError):
    code = "NonContiguousSlots"
    default_message = (
        "Selected time slots at the same location must be consecutive. "
        "Please book separate sessions individually."
    )


class SlotFull(BookingError):
    code = "SlotFull"
    title = "Slot Full"
    status_code = 409

    def __init__(self, current_count: int, max_capacity: int):
        self.current_count = current_count
        self.max_capacity = max_capacity
        super().__init__(
            f"This time slot is already full ({current_count}/{max_capacity} members). "
            "Please choose another time."
        )


class PastBooking(BookingError):
    code = "PastBooking"
    title = "Invalid Booking Time"
    default_message = (
        "Cannot create a booking for a time that has already passed. "
        "Please select a future time slot."
    )


class BookingFailed(BookingError):
    code = "BookingFailed"


class BookingTooSoon(BookingFailed):
    code = "BookingTooSoon"
    default_message = "Bookings must be at least 1 week in advance."


class PaymentError(BookingError):
    code = "PaymentError"
    title = "Payment Error"
    status_code = 402
    default_message = (
        "There was an issue processing your payment. Please contact support."
    )


class PaymentCancelled(BookingError):
    code = "PaymentCancelled"
    title = "Payment Cancelled"
    default_message = "Your payment was cancelled. No charges were made."


class PermissionDenied(BookingError):
    code = "PermissionDenied"
    status_code = 403
    default_message = (
        "You do not have permission to make this booking. "
        "Please try logging out and back in."
    )
