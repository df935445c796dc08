"""
Resolución de los slots elegidos en el calendario a ventanas de disponibilidad.

Los slots se agrupan por sede y cada grupo se convierte en un único
BookingIntent que va desde el inicio de la primera ventana hasta el fin
de la última.
"""

from sqlalchemy.orm import Session
from datetime import date
from typing import Dict, List, Optional
import logging
import os

from app.crud import availability as availability_crud
from app.models.availability import Availability
from app.schemas.booking import BookingIntent, SelectedSlot
from app.utils.booking_errors import NonContiguousSlots, SlotUnavailable
from app.utils.timezone import (
    format_local_time,
    local_datetime_to_utc,
    local_today,
    parse_time24,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CAPACITY = int(os.getenv("DEFAULT_MAX_CAPACITY", "10"))


def slot_display_time(slot: SelectedSlot) -> str:
    if slot.display_time:
        return slot.display_time
    if slot.time24:
        return slot.time24
    return f"availability {slot.availability_id}"


def group_slots_by_location(
    db: Session, slots: List[SelectedSlot]
) -> Dict[int, List[SelectedSlot]]:
    """
    Agrupa los slots por sede, respetando el orden en que aparece cada sede.
    Los slots que solo traen availability_id toman la sede de la ventana.
    """
    grouped: Dict[int, List[SelectedSlot]] = {}
    for slot in slots:
        location_id = slot.location_id
        if location_id is None:
            availability = availability_crud.get_availability(db, slot.availability_id)
            if not availability:
                raise SlotUnavailable(slot_display_time(slot))
            location_id = availability.location_id
        grouped.setdefault(location_id, []).append(slot)
    return grouped


def resolve_slot(
    db: Session, location_id: int, slot: SelectedSlot, booking_date: date
) -> Availability:
    """
    Busca la ventana libre que corresponde a un slot.

    Raises:
        SlotUnavailable: si no hay ventana libre para el slot
    """
    if slot.availability_id is not None:
        availability = availability_crud.get_open_availability(db, slot.availability_id)
        if availability and availability.location_id != location_id:
            availability = None
    else:
        local_time = parse_time24(slot.time24)
        if local_time is None:
            raise SlotUnavailable(slot_display_time(slot))
        start_time = local_datetime_to_utc(booking_date, local_time)
        availability = availability_crud.find_open_availability_by_start(
            db, location_id, start_time
        )

    if not availability:
        logger.info(
            f"Slot {slot_display_time(slot)} at location {location_id} "
            f"is no longer available"
        )
        raise SlotUnavailable(slot_display_time(slot))
    return availability


def ensure_contiguous(windows: List[Availability]) -> None:
    for previous, current in zip(windows, windows[1:]):
        if current.start_time != previous.end_time:
            raise NonContiguousSlots()


def fold_windows(location_id: int, windows: List[Availability]) -> BookingIntent:
    windows = sorted(windows, key=lambda window: window.start_time)
    first = windows[0]
    last = windows[-1]
    return BookingIntent(
        location_id=location_id,
        start_time=first.start_time,
        end_time=last.end_time,
        service_name=first.service_name or None,
        matching_availability_ids=[window.id for window in windows],
        max_capacity=first.max_capacity or DEFAULT_MAX_CAPACITY,
    )


def resolve_slots(
    db: Session, slots: List[SelectedSlot], booking_date: Optional[date] = None
) -> List[BookingIntent]:
    """
    Convierte los slots elegidos en un BookingIntent por sede (sin costo).

    Args:
        db: Sesión de base de datos
        slots: Slots elegidos, en orden
        booking_date: Fecha local de la reserva (default: hoy en Sydney)

    Returns:
        List[BookingIntent]: Un intent por sede

    Raises:
        SlotUnavailable: si algún slot ya no está libre
        NonContiguousSlots: si los slots de una sede no son consecutivos
    """
    booking_date = booking_date or local_today()
    intents = []

    for location_id, location_slots in group_slots_by_location(db, slots).items():
        windows = []
        seen_ids = set()
        for slot in location_slots:
            window = resolve_slot(db, location_id, slot, booking_date)
            if window.id in seen_ids:
                continue  # Mismo slot elegido dos veces
            seen_ids.add(window.id)
            windows.append(window)

        windows.sort(key=lambda window: window.start_time)
        ensure_contiguous(windows)
        intent = fold_windows(location_id, windows)
        logger.debug(
            f"Resolved {len(windows)} window(s) at location {location_id}: "
            f"{format_local_time(intent.start_time)} - {format_local_time(intent.end_time)}"
        )
        intents.append(intent)

    return intents
