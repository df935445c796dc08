from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.crud import location as crud
from app.schemas.location import Location, LocationCreate
from app.services.auth import get_current_user, get_current_admin
from app.models.user import User

router = APIRouter()


@router.get("/", response_model=List[Location])
def read_locations(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_locations(db, skip=skip, limit=limit)


@router.post("/", response_model=Location)
def create_location(
    location: LocationCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return crud.create_location(db, location)
