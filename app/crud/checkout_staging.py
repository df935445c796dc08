from sqlalchemy.orm import Session
from decimal import Decimal
from typing import List, Optional

from app.models.checkout_staging import (
    CheckoutStaging,
    ProcessedPaymentSession,
    PaymentSessionOutcome,
)
from app.schemas.booking import BookingIntent


def stage_intents(
    db: Session,
    session_id: str,
    user_id: int,
    intents: List[BookingIntent],
    total_cost: Decimal,
) -> CheckoutStaging:
    db_staging = CheckoutStaging(
        session_id=session_id,
        user_id=user_id,
        intents=[intent.model_dump(mode="json") for intent in intents],
        total_cost=total_cost,
    )
    db.add(db_staging)
    db.commit()
    db.refresh(db_staging)
    return db_staging


def get_staging(
    db: Session, session_id: str, user_id: Optional[int] = None
) -> Optional[CheckoutStaging]:
    query = db.query(CheckoutStaging).filter(CheckoutStaging.session_id == session_id)
    if user_id is not None:
        query = query.filter(CheckoutStaging.user_id == user_id)
    return query.first()


def load_staged_intents(staging: CheckoutStaging) -> List[BookingIntent]:
    return [BookingIntent.model_validate(raw) for raw in staging.intents or []]


def clear_staging(db: Session, session_id: str) -> bool:
    """Borra la entrada. No hace commit."""
    deleted = (
        db.query(CheckoutStaging)
        .filter(CheckoutStaging.session_id == session_id)
        .delete(synchronize_session=False)
    )
    return deleted > 0


def is_session_processed(db: Session, session_id: str) -> bool:
    return (
        db.query(ProcessedPaymentSession)
        .filter(ProcessedPaymentSession.session_id == session_id)
        .first()
        is not None
    )


def mark_session_processed(
    db: Session, session_id: str, user_id: int, outcome: PaymentSessionOutcome
) -> ProcessedPaymentSession:
    """Registra la sesión como procesada. No hace commit."""
    processed = ProcessedPaymentSession(
        session_id=session_id, user_id=user_id, outcome=outcome
    )
    db.add(processed)
    db.flush()
    return processed
