from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
import logging

from app.models.user import User
from app.schemas.booking import (
    Booking as BookingSchema,
    BookingSubmissionResult,
    SelectedSlot,
    SubmissionStatus,
)
from app.schemas.payment import PaymentMethod
from app.services.booking_committer import (
    commit_bookings,
    validate_advance_notice,
    validate_not_past,
)
from app.services.payment_dispatcher import dispatch_payment
from app.services.stripe_service import stripe_service
from app.utils.capacity_guard import check_capacity
from app.utils.pricing import calculate_booking_cost
from app.utils.slot_resolver import resolve_slots

logger = logging.getLogger(__name__)


def format_duration(hours: float) -> str:
    return f"{hours:.1f} {'hour' if hours == 1 else 'hours'}"


def submit_booking(
    db: Session,
    user: User,
    slots: List[SelectedSlot],
    booking_date: Optional[date] = None,
    gateway=stripe_service,
) -> BookingSubmissionResult:
    """
    Flujo completo de una reserva:
    slots -> ventanas -> costo -> capacidad -> pago -> reservas.

    Si el pago va por Stripe Checkout el flujo se suspende: se devuelve la URL
    de pago y las reservas se crean al volver (resumption.resume_checkout).

    Raises:
        BookingError: cualquier error mostrable al usuario
    """
    # 1. Resolver slots a ventanas concretas (un intent por sede)
    intents = resolve_slots(db, slots, booking_date)

    # 2. Costo y capacidad de cada intent
    for intent in intents:
        intent.cost = calculate_booking_cost(intent.service_name, intent.duration_hours)
        intent.current_count = check_capacity(db, intent)

    # 3. Nada en el pasado; mínimo una semana de anticipación para alumnos
    validate_not_past(intents)
    if user.is_student:
        validate_advance_notice(intents)

    # 4. Pago
    dispatch = dispatch_payment(db, user, intents, gateway=gateway)
    if dispatch.method == PaymentMethod.CHECKOUT:
        return BookingSubmissionResult(
            status=SubmissionStatus.PAYMENT_REQUIRED,
            title="Payment Required",
            message="Redirecting to secure checkout to complete your booking.",
            checkout_url=dispatch.checkout_url,
            session_id=dispatch.session_id,
        )

    # 5. Reservas (misma transacción que el descuento del wallet)
    bookings, summary = commit_bookings(db, user, intents)

    return BookingSubmissionResult(
        status=SubmissionStatus.CONFIRMED,
        title="Booking Confirmed!",
        message=(
            "Your lesson has been booked successfully.\n\n"
            f"Duration: {format_duration(summary.duration_hours)}"
        ),
        bookings=[BookingSchema.model_validate(booking) for booking in bookings],
        summary=summary,
    )
