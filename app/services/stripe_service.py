"""
Stripe Checkout service for the academy backend.
Creates checkout sessions for bookings and wallet top-ups, and verifies
them when the user comes back from the Stripe payment page.
"""

import os
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import stripe
from dotenv import load_dotenv

from app.schemas.payment import CheckoutSession, PaymentType, PaymentVerification
from app.utils.booking_errors import PaymentError
from app.utils.pricing import from_cents, to_cents

load_dotenv()

logger = logging.getLogger(__name__)

# Stripe metadata values are limited to 500 characters
METADATA_VALUE_LIMIT = 500

# Network timeout for each Stripe request, below the verification deadline
STRIPE_TIMEOUT_SECONDS = float(os.getenv("STRIPE_TIMEOUT_SECONDS", "8"))


class PaymentPending(Exception):
    """The session exists but Stripe has not confirmed the payment yet."""


def _field(obj: Any, key: str) -> Any:
    # StripeObject dejó de ser un dict en las versiones nuevas del SDK
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


class StripeService:
    """Service for Stripe Checkout sessions"""

    def __init__(self):
        self.secret_key = os.getenv("STRIPE_SECRET_KEY")
        self.currency = os.getenv("STRIPE_CURRENCY", "aud").lower()
        self.frontend_url = os.getenv("FRONTEND_URL", "http://localhost:8081").rstrip(
            "/"
        )
        if self.secret_key:
            stripe.api_key = self.secret_key
            stripe.default_http_client = stripe.RequestsClient(
                timeout=STRIPE_TIMEOUT_SECONDS
            )
        else:
            logger.warning("STRIPE_SECRET_KEY not set: payments will not work")

    def is_configured(self) -> bool:
        """Check if Stripe is properly configured"""
        return bool(self.secret_key)

    @property
    def success_url(self) -> str:
        return f"{self.frontend_url}/home?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.frontend_url}/home?canceled=true"

    def create_checkout_session(
        self,
        user_id: int,
        amount: Decimal,
        payment_type: PaymentType,
        booking_data: Optional[List[Dict[str, Any]]] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSession:
        """
        Create a Stripe Checkout Session

        Args:
            user_id: Academy user paying
            amount: Amount in dollars
            payment_type: booking or topup
            booking_data: Booking list to attach as metadata (optional)
            metadata: Extra metadata (optional)

        Raises:
            PaymentError: If Stripe rejects the request
        """
        if not self.is_configured():
            raise PaymentError("Payments are not configured. Please contact support.")

        session_metadata = {
            **(metadata or {}),
            "type": payment_type.value,
            "userId": str(user_id),
        }
        if booking_data:
            encoded = json.dumps(booking_data, default=str)
            # The staging table is the source of truth, metadata is informative
            if len(encoded) <= METADATA_VALUE_LIMIT:
                session_metadata["bookingData"] = encoded

        product_name = (
            "Tennis lesson booking"
            if payment_type == PaymentType.BOOKING
            else "Wallet top-up"
        )

        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "unit_amount": to_cents(amount),
                            "product_data": {"name": product_name},
                        },
                        "quantity": 1,
                    }
                ],
                client_reference_id=str(user_id),
                metadata=session_metadata,
                success_url=self.success_url,
                cancel_url=self.cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Error creating checkout session for user {user_id}: {e}")
            raise PaymentError(
                getattr(e, "user_message", None)
                or "Failed to initiate payment. Please try again."
            ) from e

        logger.info(
            f"Checkout session {session.id} created for user {user_id} "
            f"({payment_type.value}, {amount})"
        )
        return CheckoutSession(session_id=session.id, url=getattr(session, "url", None))

    def create_topup_session(self, user_id: int, amount: Decimal) -> CheckoutSession:
        return self.create_checkout_session(
            user_id=user_id, amount=amount, payment_type=PaymentType.TOPUP
        )

    def verify_payment(self, session_id: str, user_id: int) -> PaymentVerification:
        """
        Retrieve the session from Stripe and check it was paid by this user.

        Raises:
            PaymentPending: If Stripe is unreachable or the payment is not settled yet
        """
        if not self.is_configured():
            return PaymentVerification(
                success=False, error="Payments are not configured."
            )

        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.APIConnectionError as e:
            logger.warning(f"Stripe unreachable verifying session {session_id}: {e}")
            raise PaymentPending(str(e)) from e
        except stripe.StripeError as e:
            logger.error(f"Error retrieving checkout session {session_id}: {e}")
            return PaymentVerification(success=False, error="Payment verification failed")

        return self.verification_from_session(session, user_id)

    def verification_from_session(
        self, session: Any, user_id: int
    ) -> PaymentVerification:
        metadata = _field(session, "metadata") or {}
        owner = _field(session, "client_reference_id") or _field(metadata, "userId")
        if owner is not None and str(owner) != str(user_id):
            logger.warning(
                f"Checkout session {_field(session, 'id')} belongs to user {owner}, "
                f"not {user_id}"
            )
            return PaymentVerification(
                success=False, error="This payment session belongs to another user."
            )

        if _field(session, "status") == "expired":
            return PaymentVerification(success=False, error="Payment session expired.")

        if _field(session, "payment_status") not in ("paid", "no_payment_required"):
            raise PaymentPending(
                f"Session {_field(session, 'id')} payment_status="
                f"{_field(session, 'payment_status')}"
            )

        try:
            payment_type = PaymentType(
                _field(metadata, "type") or PaymentType.BOOKING.value
            )
        except ValueError:
            payment_type = PaymentType.BOOKING

        return PaymentVerification(
            success=True,
            type=payment_type,
            amount=from_cents(_field(session, "amount_total") or 0),
        )


# Global instance
stripe_service = StripeService()
