from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.database import get_db
from app.crud import booking as crud
from app.schemas.booking import Booking, BookingSubmission, BookingSubmissionResult
from app.services.auth import get_current_user, get_current_admin
from app.services.booking_flow import submit_booking
from app.services.stripe_service import stripe_service
from app.models.user import User
from app.utils.booking_errors import BookingError
from app.utils.timezone import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=BookingSubmissionResult)
def create_booking(
    submission: BookingSubmission,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Reserva los slots elegidos. Si el saldo del wallet no alcanza, devuelve
    la URL de Stripe Checkout y las reservas se crean al volver del pago.
    """
    try:
        return submit_booking(
            db,
            current_user,
            submission.slots,
            booking_date=submission.booking_date,
            gateway=stripe_service,
        )
    except BookingError as e:
        logger.warning(f"Booking failed for user {current_user.id}: {e.code} - {e.message}")
        raise e.to_http_exception()


@router.get("/me", response_model=List[Booking])
def read_my_upcoming_bookings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_bookings(db, user_id=current_user.id, start_from=utcnow())


@router.get("/", response_model=List[Booking])
def read_bookings(
    skip: int = 0,
    limit: int = 100,
    user_id: Optional[int] = None,
    location_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return crud.get_bookings(
        db, skip=skip, limit=limit, user_id=user_id, location_id=location_id
    )
