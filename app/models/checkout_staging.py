from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, JSON, Enum
from datetime import datetime
import enum

from app.database import Base


class CheckoutStaging(Base):
    """
    Reservas pendientes de pago, guardadas antes de redirigir a Stripe Checkout.
    Se borran cuando las reservas se confirman al volver del checkout.
    """

    __tablename__ = "checkout_stagings"
    __table_args__ = {"extend_existing": True}

    session_id = Column(String, primary_key=True)  # Stripe Checkout session id
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    intents = Column(JSON, nullable=False)  # Lista serializada de BookingIntent
    total_cost = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class PaymentSessionOutcome(enum.Enum):
    BOOKING = "booking"
    TOPUP = "topup"
    FAILED = "failed"


class ProcessedPaymentSession(Base):
    """Sesiones de pago ya procesadas (clave de idempotencia)."""

    __tablename__ = "processed_payment_sessions"
    __table_args__ = {"extend_existing": True}

    session_id = Column(String, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    outcome = Column(Enum(PaymentSessionOutcome), nullable=False)
    processed_at = Column(DateTime, default=datetime.utcnow)
