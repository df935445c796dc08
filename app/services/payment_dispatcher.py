from sqlalchemy.orm import Session
from typing import List
import logging

from app.crud import checkout_staging as staging_crud
from app.crud import wallet as wallet_crud
from app.models.user import User
from app.schemas.booking import BookingIntent
from app.schemas.payment import DispatchResult, PaymentMethod, PaymentType
from app.services.stripe_service import stripe_service
from app.utils.booking_errors import PaymentError
from app.utils.pricing import calculate_total_cost

logger = logging.getLogger(__name__)


def dispatch_payment(
    db: Session,
    user: User,
    intents: List[BookingIntent],
    gateway=stripe_service,
) -> DispatchResult:
    """
    Cobra las reservas con el saldo del wallet o crea un Stripe Checkout.

    - Si el saldo alcanza: descuenta el total (sin commit, se confirma junto
      con las reservas).
    - Si no alcanza: crea la sesión de checkout por el total, guarda los
      intents en checkout_stagings y devuelve la URL de pago. Las reservas se
      crean al volver del checkout (ver resumption.resume_checkout).

    Raises:
        PaymentError: si falla el descuento o la creación del checkout
    """
    total_cost = calculate_total_cost(intents)
    balance = wallet_crud.get_wallet_balance(db, user.id)

    if balance >= total_cost:
        logger.info(
            f"Using wallet balance ${balance} for booking cost ${total_cost} "
            f"(user {user.id})"
        )
        if not wallet_crud.deduct_from_wallet(db, user.id, total_cost):
            db.rollback()
            logger.error(f"Wallet deduction rejected for user {user.id}")
            raise PaymentError(
                "Failed to process wallet payment. Please try again or use card payment."
            )
        return DispatchResult(method=PaymentMethod.WALLET, total_cost=total_cost)

    # Saldo insuficiente: se cobra el 100% por checkout
    logger.info(
        f"Insufficient wallet balance ${balance} (required ${total_cost}) "
        f"for user {user.id}, creating checkout session"
    )
    session = gateway.create_checkout_session(
        user_id=user.id,
        amount=total_cost,
        payment_type=PaymentType.BOOKING,
        booking_data=[
            {
                "locationId": intent.location_id,
                "startTime": intent.start_time.isoformat(),
                "endTime": intent.end_time.isoformat(),
                "serviceName": intent.service_name,
                "cost": str(intent.cost),
            }
            for intent in intents
        ],
        metadata={"bookingType": "direct"},
    )
    if not session.url:
        raise PaymentError("Checkout URL not returned from server")

    staging_crud.stage_intents(db, session.session_id, user.id, intents, total_cost)

    return DispatchResult(
        method=PaymentMethod.CHECKOUT,
        total_cost=total_cost,
        session_id=session.session_id,
        checkout_url=session.url,
    )
