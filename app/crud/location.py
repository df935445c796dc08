from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.location import Location
from app.schemas.location import LocationCreate


def get_location(db: Session, location_id: int) -> Optional[Location]:
    return db.query(Location).filter(Location.id == location_id).first()


def get_locations(db: Session, skip: int = 0, limit: int = 100) -> List[Location]:
    return db.query(Location).order_by(Location.name).offset(skip).limit(limit).all()


def create_location(db: Session, location: LocationCreate) -> Location:
    db_location = Location(**location.model_dump())
    db.add(db_location)
    db.commit()
    db.refresh(db_location)
    return db_location
