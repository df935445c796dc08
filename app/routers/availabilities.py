from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from app.database import get_db
from app.crud import availability as crud
from app.crud import location as location_crud
from app.schemas.availability import Availability, AvailabilityCreate
from app.services.auth import get_current_user, get_current_admin
from app.models.user import User
from app.utils.timezone import local_date_to_utc_range

router = APIRouter()


@router.get("/", response_model=List[Availability])
def read_open_availabilities(
    location_id: Optional[int] = None,
    target_date: Optional[date] = Query(
        None, description="Local (Sydney) date to list open windows (YYYY-MM-DD)"
    ),
    skip: int = 0,
    limit: int = 200,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Ventanas libres (no completas), opcionalmente filtradas por sede y fecha local.
    """
    start_from = start_until = None
    if target_date:
        start_from, start_until = local_date_to_utc_range(target_date)

    return crud.get_availabilities(
        db,
        skip=skip,
        limit=limit,
        location_id=location_id,
        start_from=start_from,
        start_until=start_until,
    )


@router.post("/", response_model=Availability)
def create_availability(
    availability: AvailabilityCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if not location_crud.get_location(db, availability.location_id):
        raise HTTPException(status_code=404, detail="Location not found")
    return crud.create_availability(db, availability)
