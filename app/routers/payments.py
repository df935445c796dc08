from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.crud import wallet as wallet_crud
from app.schemas.payment import (
    CheckoutSession,
    ResumeRequest,
    ResumptionResult,
    TopUpRequest,
    WalletBalance,
)
from app.services.auth import get_current_user
from app.services.resumption import resume_checkout
from app.services.stripe_service import stripe_service
from app.models.user import User
from app.utils.booking_errors import BookingError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/wallet", response_model=WalletBalance)
def read_wallet_balance(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WalletBalance(
        user_id=current_user.id,
        balance=wallet_crud.get_wallet_balance(db, current_user.id),
    )


@router.post("/wallet/top-up", response_model=CheckoutSession)
def create_wallet_top_up(
    top_up: TopUpRequest,
    current_user: User = Depends(get_current_user),
):
    """Crea un Stripe Checkout para recargar el wallet."""
    try:
        return stripe_service.create_topup_session(current_user.id, top_up.amount)
    except BookingError as e:
        raise e.to_http_exception()


@router.post("/checkout/resume", response_model=ResumptionResult)
def resume_after_checkout(
    request: ResumeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Llamado por la app al volver de Stripe (session_id o canceled=true en la URL).
    """
    try:
        return resume_checkout(
            db,
            current_user,
            request.session_id,
            canceled=request.canceled,
            gateway=stripe_service,
        )
    except BookingError as e:
        logger.warning(
            f"Checkout resumption failed for user {current_user.id}: "
            f"{e.code} - {e.message}"
        )
        raise e.to_http_exception()
