"""
Retorno desde Stripe Checkout.

Cuando el usuario vuelve del checkout con un session_id se verifica el pago y:
- si hay reservas guardadas para esa sesión, se crean y se borra la entrada;
- si no hay, el pago se toma como recarga del wallet.

Cada session_id se procesa una sola vez (tabla processed_payment_sessions).
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from decimal import Decimal
from typing import Optional
import logging
import os
import time

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_delay,
    wait_fixed,
)

from app.crud import checkout_staging as staging_crud
from app.crud import wallet as wallet_crud
from app.models.checkout_staging import PaymentSessionOutcome
from app.models.user import User
from app.schemas.booking import Booking as BookingSchema
from app.schemas.payment import (
    PaymentVerification,
    ResumptionResult,
    ResumptionStatus,
)
from app.services.booking_committer import commit_bookings, validate_advance_notice
from app.services.stripe_service import PaymentPending, stripe_service
from app.utils.booking_errors import BookingError, PaymentCancelled, PaymentError

logger = logging.getLogger(__name__)

PAYMENT_VERIFY_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_VERIFY_TIMEOUT_SECONDS", "10"))
PAYMENT_VERIFY_RETRY_WAIT_SECONDS = float(
    os.getenv("PAYMENT_VERIFY_RETRY_WAIT_SECONDS", "2")
)


def verify_with_retry(
    gateway,
    session_id: str,
    user_id: int,
    timeout_seconds: float = PAYMENT_VERIFY_TIMEOUT_SECONDS,
    retry_wait_seconds: float = PAYMENT_VERIFY_RETRY_WAIT_SECONDS,
) -> PaymentVerification:
    """
    Verifica el pago reintentando mientras Stripe no lo confirme,
    con un límite total de timeout_seconds.

    Raises:
        PaymentError: si se agota el tiempo o el pago no es válido
    """
    started = time.monotonic()
    try:
        for attempt in Retrying(
            stop=stop_after_delay(timeout_seconds),
            wait=wait_fixed(retry_wait_seconds),
            retry=retry_if_exception_type(PaymentPending),
        ):
            with attempt:
                verification = gateway.verify_payment(session_id, user_id)
    except RetryError as e:
        logger.error(f"Payment verification timeout for session {session_id}")
        raise PaymentError("Payment verification timeout") from e

    # Una respuesta que llega pasado el límite cuenta como timeout
    elapsed = time.monotonic() - started
    if elapsed > timeout_seconds:
        logger.error(
            f"Payment verification for session {session_id} took {elapsed:.1f}s "
            f"(limit {timeout_seconds}s)"
        )
        raise PaymentError("Payment verification timeout")

    if not verification or not verification.success:
        error = verification.error if verification else None
        raise PaymentError(error or "Payment verification failed")
    return verification


def _already_processed_result() -> ResumptionResult:
    return ResumptionResult(
        status=ResumptionStatus.ALREADY_PROCESSED,
        title="Payment Already Processed",
        message="This payment has already been processed.",
    )


def _compensate_failed_booking(
    db: Session, user: User, session_id: str, total_cost: Decimal
) -> None:
    """
    El pago ya se cobró pero las reservas no se pudieron crear: se acredita
    el monto en el wallet y se cierra la sesión.
    """
    try:
        staging_crud.clear_staging(db, session_id)
        staging_crud.mark_session_processed(
            db, session_id, user.id, PaymentSessionOutcome.FAILED
        )
        new_balance = wallet_crud.add_to_wallet(db, user.id, total_cost)
        db.commit()
        logger.warning(
            f"Bookings from session {session_id} failed; credited ${total_cost} "
            f"to wallet of user {user.id} (new balance ${new_balance})"
        )
    except IntegrityError:
        db.rollback()
        logger.warning(f"Session {session_id} was processed concurrently")


def resume_checkout(
    db: Session,
    user: User,
    session_id: Optional[str],
    canceled: bool = False,
    gateway=stripe_service,
    timeout_seconds: float = PAYMENT_VERIFY_TIMEOUT_SECONDS,
    retry_wait_seconds: float = PAYMENT_VERIFY_RETRY_WAIT_SECONDS,
) -> ResumptionResult:
    """
    Procesa el retorno desde Stripe Checkout.

    Args:
        db: Sesión de base de datos
        user: Usuario autenticado
        session_id: Stripe Checkout session id
        canceled: True si el usuario canceló el pago
        gateway: Servicio de pagos (default: stripe_service)

    Returns:
        ResumptionResult

    Raises:
        PaymentCancelled: si el pago fue cancelado
        PaymentError: si falta la sesión o la verificación falla
        BookingError: si las reservas guardadas no se pueden crear
    """
    if canceled:
        logger.info(f"Checkout cancelled by user {user.id} (session {session_id})")
        raise PaymentCancelled()

    if not session_id:
        raise PaymentError("Payment session ID is missing.")

    if staging_crud.is_session_processed(db, session_id):
        logger.info(f"Session {session_id} already processed, skipping")
        return _already_processed_result()

    verification = verify_with_retry(
        gateway, session_id, user.id, timeout_seconds, retry_wait_seconds
    )

    staging = staging_crud.get_staging(db, session_id, user.id)
    if staging is not None:
        intents = staging_crud.load_staged_intents(staging)
        total_cost = Decimal(staging.total_cost)
        try:
            if user.is_student:
                validate_advance_notice(intents)
            staging_crud.mark_session_processed(
                db, session_id, user.id, PaymentSessionOutcome.BOOKING
            )
            staging_crud.clear_staging(db, session_id)
            bookings, summary = commit_bookings(db, user, intents)
        except IntegrityError:
            db.rollback()
            return _already_processed_result()
        except BookingError:
            db.rollback()
            _compensate_failed_booking(db, user, session_id, total_cost)
            raise

        return ResumptionResult(
            status=ResumptionStatus.BOOKING_CONFIRMED,
            title="Booking Confirmed!",
            message="Your lesson has been booked successfully.",
            bookings=[BookingSchema.model_validate(booking) for booking in bookings],
            summary=summary,
        )

    # Sin reservas guardadas: se toma como recarga del wallet
    try:
        staging_crud.mark_session_processed(
            db, session_id, user.id, PaymentSessionOutcome.TOPUP
        )
        new_balance = wallet_crud.add_to_wallet(
            db, user.id, verification.amount or Decimal("0.00")
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        return _already_processed_result()

    logger.info(
        f"Wallet top-up of ${verification.amount} from session {session_id} "
        f"for user {user.id}"
    )
    return ResumptionResult(
        status=ResumptionStatus.TOPUP,
        title="Top-Up Successful!",
        message=(
            "Your wallet has been topped up successfully. "
            f"New balance: ${new_balance:.2f}"
        ),
        new_balance=new_balance,
    )
