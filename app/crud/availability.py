from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import List, Optional

from app.models.availability import Availability
from app.schemas.availability import AvailabilityCreate
from app.utils.timezone import to_utc_naive

# Tolerancia al buscar una ventana por hora de inicio
START_TIME_TOLERANCE = timedelta(seconds=1)


def get_availability(db: Session, availability_id: int) -> Optional[Availability]:
    return db.query(Availability).filter(Availability.id == availability_id).first()


def get_open_availability(
    db: Session, availability_id: int
) -> Optional[Availability]:
    return (
        db.query(Availability)
        .filter(Availability.id == availability_id)
        .filter(Availability.is_booked == False)
        .first()
    )


def find_open_availability_by_start(
    db: Session, location_id: int, start_time: datetime
) -> Optional[Availability]:
    """
    Busca una ventana libre de la sede que empiece en start_time (±1 segundo).
    """
    return (
        db.query(Availability)
        .filter(Availability.location_id == location_id)
        .filter(Availability.is_booked == False)
        .filter(Availability.start_time >= start_time - START_TIME_TOLERANCE)
        .filter(Availability.start_time <= start_time + START_TIME_TOLERANCE)
        .order_by(Availability.start_time)
        .first()
    )


def get_availabilities(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    location_id: Optional[int] = None,
    start_from: Optional[datetime] = None,
    start_until: Optional[datetime] = None,
    only_open: bool = True,
) -> List[Availability]:
    query = db.query(Availability)

    if location_id:
        query = query.filter(Availability.location_id == location_id)
    if start_from:
        query = query.filter(Availability.start_time >= start_from)
    if start_until:
        query = query.filter(Availability.start_time < start_until)
    if only_open:
        query = query.filter(Availability.is_booked == False)

    return query.order_by(Availability.start_time).offset(skip).limit(limit).all()


def create_availability(db: Session, availability: AvailabilityCreate) -> Availability:
    data = availability.model_dump()
    data["start_time"] = to_utc_naive(data["start_time"])
    data["end_time"] = to_utc_naive(data["end_time"])
    db_availability = Availability(**data)
    db.add(db_availability)
    db.commit()
    db.refresh(db_availability)
    return db_availability


def lock_availabilities(db: Session, availability_ids: List[int]) -> List[Availability]:
    """SELECT ... FOR UPDATE sobre las ventanas. No hace commit."""
    if not availability_ids:
        return []
    return (
        db.query(Availability)
        .filter(Availability.id.in_(availability_ids))
        .order_by(Availability.id)
        .with_for_update()
        .all()
    )


def mark_availabilities_booked(db: Session, availability_ids: List[int]) -> int:
    """Marca las ventanas como completas. No hace commit."""
    if not availability_ids:
        return 0
    return (
        db.query(Availability)
        .filter(Availability.id.in_(set(availability_ids)))
        .update({Availability.is_booked: True}, synchronize_session=False)
    )
