"""
Control de capacidad de las ventanas de disponibilidad.

La capacidad se valida dos veces: al enviar la reserva (para avisar al
usuario antes de cobrar) y dentro de la transacción de confirmación, con las
ventanas bloqueadas, para que dos reservas simultáneas no superen el máximo.
"""

from sqlalchemy.orm import Session
from typing import List
import logging

from app.crud import availability as availability_crud
from app.crud import booking as booking_crud
from app.schemas.booking import BookingIntent
from app.utils.booking_errors import SlotFull

logger = logging.getLogger(__name__)


def reaches_capacity(current_count: int, max_capacity: int) -> bool:
    """True si con una reserva más la ventana queda completa."""
    return current_count + 1 >= max_capacity


def check_capacity(db: Session, intent: BookingIntent) -> int:
    """
    Cuenta las reservas existentes para (sede, inicio, fin) del intent.

    Returns:
        int: Cantidad actual de reservas

    Raises:
        SlotFull: si la ventana ya está completa
    """
    current_count = booking_crud.count_bookings_for_slot(
        db, intent.location_id, intent.start_time, intent.end_time
    )
    if current_count >= intent.max_capacity:
        logger.info(
            f"Slot full at location {intent.location_id} "
            f"{intent.start_time.isoformat()} ({current_count}/{intent.max_capacity})"
        )
        raise SlotFull(current_count, intent.max_capacity)
    return current_count


def check_capacity_locked(db: Session, intent: BookingIntent) -> int:
    """
    Igual que check_capacity pero bloqueando antes las ventanas del intent,
    para usar dentro de la transacción que inserta la reserva.
    """
    locked: List = availability_crud.lock_availabilities(
        db, intent.matching_availability_ids
    )
    if locked:
        # La capacidad vigente es la de la primera ventana
        first = min(locked, key=lambda window: window.start_time)
        intent.max_capacity = first.max_capacity or intent.max_capacity
    return check_capacity(db, intent)
