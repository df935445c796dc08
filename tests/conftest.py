"""
Configuración compartida para tests pytest
"""
import pytest
from datetime import time, timedelta
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db

# Importar todos los modelos para que SQLAlchemy pueda resolver las relaciones
from app.models.user import User, UserRole
from app.models.location import Location
from app.models.availability import Availability
from app.models.booking import Booking
from app.models.checkout_staging import CheckoutStaging, ProcessedPaymentSession
from app.schemas.payment import CheckoutSession, PaymentType, PaymentVerification
from app.services.stripe_service import PaymentPending
from app.utils.booking_errors import PaymentError
from app.utils.timezone import local_datetime_to_utc, local_today


# Base de datos en memoria para tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Crear base de datos de test y limpiarla después"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def override_get_db(db):
    """Override de get_db para tests"""
    def _get_db():
        try:
            yield db
        finally:
            pass
    return _get_db


def make_user(db, email, role=UserRole.STUDENT, wallet_balance="0.00"):
    user = User(
        first_name="Test",
        last_name="User",
        email=email,
        hashed_password="hashed",
        role=role,
        wallet_balance=Decimal(wallet_balance),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def student(db):
    """Alumno con saldo suficiente para una clase"""
    return make_user(db, "student@example.com", wallet_balance="500.00")


@pytest.fixture
def broke_student(db):
    """Alumno sin saldo en el wallet"""
    return make_user(db, "broke@example.com", wallet_balance="0.00")


@pytest.fixture
def coach(db):
    return make_user(db, "coach@example.com", role=UserRole.COACH, wallet_balance="500.00")


@pytest.fixture
def broke_coach(db):
    return make_user(db, "broke_coach@example.com", role=UserRole.COACH)


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def location(db):
    location = Location(name="Pennant Hills Park", address="Pennant Hills NSW")
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


@pytest.fixture
def other_location(db):
    location = Location(name="Epping Courts", address="Epping NSW")
    db.add(location)
    db.commit()
    db.refresh(location)
    return location


@pytest.fixture
def booking_date():
    """Fecha local a dos semanas, cumple la regla de 7 días"""
    return local_today() + timedelta(days=14)


@pytest.fixture
def make_window(db, booking_date):
    """Factory de ventanas de una hora en hora local de Sydney"""
    def _make_window(
        location,
        hour,
        service_name="Private Lesson",
        max_capacity=10,
        day=None,
        is_booked=False,
    ):
        day = day or booking_date
        start = local_datetime_to_utc(day, time(hour, 0))
        window = Availability(
            location_id=location.id,
            start_time=start,
            end_time=start + timedelta(hours=1),
            service_name=service_name,
            max_capacity=max_capacity,
            is_booked=is_booked,
        )
        db.add(window)
        db.commit()
        db.refresh(window)
        return window
    return _make_window


class FakeGateway:
    """Reemplazo de StripeService para los tests"""

    def __init__(self, fail_checkout=False, url="https://checkout.stripe.test/pay"):
        self.fail_checkout = fail_checkout
        self.url = url
        self.created = []
        self.verify_calls = 0
        self.pending_times = 0
        self.verification = PaymentVerification(
            success=True, type=PaymentType.BOOKING, amount=Decimal("149.99")
        )

    def create_checkout_session(
        self, user_id, amount, payment_type, booking_data=None, metadata=None
    ):
        if self.fail_checkout:
            raise PaymentError("Failed to initiate payment. Please try again.")
        session_id = f"cs_test_{len(self.created) + 1}"
        self.created.append(
            {
                "session_id": session_id,
                "user_id": user_id,
                "amount": amount,
                "payment_type": payment_type,
                "booking_data": booking_data,
            }
        )
        return CheckoutSession(session_id=session_id, url=self.url)

    def verify_payment(self, session_id, user_id):
        self.verify_calls += 1
        if self.verify_calls <= self.pending_times:
            raise PaymentPending(f"Session {session_id} not paid yet")
        return self.verification


@pytest.fixture
def gateway():
    return FakeGateway()
