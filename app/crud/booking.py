from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional

from app.models.booking import Booking
from app.schemas.booking import BookingIntent


def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
    return db.query(Booking).filter(Booking.id == booking_id).first()


def get_bookings(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[int] = None,
    location_id: Optional[int] = None,
    start_from: Optional[datetime] = None,
) -> List[Booking]:
    query = db.query(Booking)

    if user_id:
        query = query.filter(Booking.user_id == user_id)
    if location_id:
        query = query.filter(Booking.location_id == location_id)
    if start_from:
        query = query.filter(Booking.start_time >= start_from)

    return query.order_by(Booking.start_time).offset(skip).limit(limit).all()


def count_bookings_for_slot(
    db: Session, location_id: int, start_time: datetime, end_time: datetime
) -> int:
    return (
        db.query(Booking)
        .filter(
            Booking.location_id == location_id,
            Booking.start_time == start_time,
            Booking.end_time == end_time,
        )
        .count()
    )


def add_booking_from_intent(db: Session, user_id: int, intent: BookingIntent) -> Booking:
    """Agrega la reserva a la sesión sin hacer commit (lo hace el llamador)."""
    db_booking = Booking(
        user_id=user_id,
        location_id=intent.location_id,
        start_time=intent.start_time,
        end_time=intent.end_time,
        credit_cost=intent.cost,
        service_name=intent.service_name,
    )
    db.add(db_booking)
    db.flush()
    return db_booking
