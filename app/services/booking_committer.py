"""
Confirmación de reservas.

Todas las reservas de un envío se insertan en una sola transacción: si una
falla, no queda ninguna (ni el descuento del wallet hecho antes en la misma
sesión).
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple
import logging
import os

from app.crud import availability as availability_crud
from app.crud import booking as booking_crud
from app.models.booking import Booking
from app.models.user import User
from app.schemas.booking import BookingIntent, BookingSummary
from app.utils.booking_errors import (
    BookingError,
    BookingFailed,
    BookingTooSoon,
    PastBooking,
    PermissionDenied,
)
from app.utils.capacity_guard import check_capacity_locked, reaches_capacity
from app.utils.timezone import utcnow

logger = logging.getLogger(__name__)

BOOKING_MIN_ADVANCE_DAYS = int(os.getenv("BOOKING_MIN_ADVANCE_DAYS", "7"))


def validate_not_past(
    intents: List[BookingIntent], now: Optional[datetime] = None
) -> None:
    """
    Raises:
        PastBooking: si algún intent empieza antes de now
    """
    now = now or utcnow()
    for intent in intents:
        if intent.start_time < now:
            logger.error(
                f"Attempted to create booking in the past: "
                f"{intent.start_time.isoformat()} (now {now.isoformat()})"
            )
            raise PastBooking()


def validate_advance_notice(
    intents: List[BookingIntent], now: Optional[datetime] = None
) -> None:
    """
    Los alumnos deben reservar con al menos una semana de anticipación.

    Raises:
        BookingTooSoon: si algún intent empieza antes de now + 7 días
    """
    now = now or utcnow()
    earliest_allowed = now + timedelta(days=BOOKING_MIN_ADVANCE_DAYS)
    for intent in intents:
        if intent.start_time < earliest_allowed:
            logger.info(
                f"Booking at {intent.start_time.isoformat()} rejected: "
                f"less than {BOOKING_MIN_ADVANCE_DAYS} days in advance"
            )
            raise BookingTooSoon()


def is_permission_error(error: SQLAlchemyError) -> bool:
    pgcode = getattr(getattr(error, "orig", None), "pgcode", None)
    return pgcode == "42501" or "permission denied" in str(error).lower()


def summarize(intents: List[BookingIntent]) -> BookingSummary:
    return BookingSummary(
        count=len(intents),
        duration_hours=sum(intent.duration_hours for intent in intents),
        total_cost=sum((intent.cost for intent in intents), Decimal("0.00")),
    )


def commit_bookings(
    db: Session,
    user: User,
    intents: List[BookingIntent],
    enforce_advance_rule: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> Tuple[List[Booking], BookingSummary]:
    """
    Inserta las reservas de los intents y marca como completas las ventanas
    que alcanzan su capacidad.

    Args:
        db: Sesión de base de datos (puede traer un descuento de wallet pendiente)
        user: Usuario que reserva
        intents: Intents con costo y ventanas resueltas
        enforce_advance_rule: Aplicar la regla de 7 días (default: solo alumnos)
        now: Hora actual UTC (para tests)

    Returns:
        Tuple[List[Booking], BookingSummary]

    Raises:
        PastBooking, BookingTooSoon, SlotFull, BookingFailed, PermissionDenied
    """
    now = now or utcnow()
    if enforce_advance_rule is None:
        enforce_advance_rule = user.is_student

    created: List[Booking] = []
    availability_ids_to_update: List[int] = []

    try:
        for intent in intents:
            validate_not_past([intent], now)
            if enforce_advance_rule:
                validate_advance_notice([intent], now)

            current_count = check_capacity_locked(db, intent)
            intent.current_count = current_count

            booking = booking_crud.add_booking_from_intent(db, user.id, intent)
            created.append(booking)

            if reaches_capacity(current_count, intent.max_capacity):
                availability_ids_to_update.extend(intent.matching_availability_ids)

        if availability_ids_to_update:
            availability_crud.mark_availabilities_booked(db, availability_ids_to_update)

        db.commit()
    except BookingError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Booking insert error for user {user.id}: {e}")
        if is_permission_error(e):
            raise PermissionDenied() from e
        raise BookingFailed(
            "This time slot is no longer available. Please select a different time."
            if "overlaps" in str(e).lower()
            else "Unknown error occurred while creating the booking."
        ) from e

    for booking in created:
        db.refresh(booking)

    logger.info(
        f"Created {len(created)} booking(s) for user {user.id}; "
        f"{len(set(availability_ids_to_update))} window(s) marked full"
    )
    return created, summarize(intents)
