"""
Tests del servicio de Stripe Checkout (SDK reemplazado con monkeypatch)
"""
import pytest
import stripe
from decimal import Decimal

from app.schemas.payment import PaymentType
from app.services.stripe_service import PaymentPending, StripeService
from app.utils.booking_errors import PaymentError


def checkout_session(values):
    """Session real del SDK, como la devuelve la API"""
    return stripe.checkout.Session.construct_from(values, "sk_test_dummy")


@pytest.fixture
def service():
    service = StripeService()
    service.secret_key = "sk_test_dummy"
    service.currency = "aud"
    service.frontend_url = "https://app.airdroptennis.test"
    return service


@pytest.fixture
def created_sessions(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return checkout_session(
            {"id": f"cs_test_{len(calls)}", "url": "https://checkout.stripe.test/pay"}
        )

    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return calls


def test_create_booking_checkout_session(service, created_sessions):
    """
    Test: El monto va en centavos y la metadata identifica al usuario y el tipo
    """
    session = service.create_checkout_session(
        user_id=7,
        amount=Decimal("149.99"),
        payment_type=PaymentType.BOOKING,
        booking_data=[{"locationId": 1, "startTime": "2026-11-02T23:00:00"}],
        metadata={"bookingType": "direct"},
    )

    assert session.session_id == "cs_test_1"
    assert session.url == "https://checkout.stripe.test/pay"

    kwargs = created_sessions[0]
    line_item = kwargs["line_items"][0]["price_data"]
    assert line_item["unit_amount"] == 14999
    assert line_item["currency"] == "aud"
    assert kwargs["client_reference_id"] == "7"
    assert kwargs["metadata"]["type"] == "booking"
    assert kwargs["metadata"]["userId"] == "7"
    assert kwargs["metadata"]["bookingType"] == "direct"
    assert "locationId" in kwargs["metadata"]["bookingData"]
    assert kwargs["success_url"] == (
        "https://app.airdroptennis.test/home?session_id={CHECKOUT_SESSION_ID}"
    )
    assert kwargs["cancel_url"] == "https://app.airdroptennis.test/home?canceled=true"


def test_long_booking_data_is_left_out_of_metadata(service, created_sessions):
    booking_data = [{"locationId": i, "startTime": "2026-11-02T23:00:00"} for i in range(20)]

    service.create_checkout_session(
        user_id=7,
        amount=Decimal("149.99"),
        payment_type=PaymentType.BOOKING,
        booking_data=booking_data,
    )

    assert "bookingData" not in created_sessions[0]["metadata"]


def test_create_topup_session(service, created_sessions):
    service.create_topup_session(7, Decimal("50"))

    assert created_sessions[0]["metadata"]["type"] == "topup"
    assert created_sessions[0]["line_items"][0]["price_data"]["unit_amount"] == 5000


def test_unconfigured_service_raises_payment_error(service):
    service.secret_key = None

    with pytest.raises(PaymentError):
        service.create_topup_session(7, Decimal("50"))


def test_stripe_error_becomes_payment_error(service, monkeypatch):
    def failing_create(**kwargs):
        raise stripe.StripeError("Card declined")

    monkeypatch.setattr(stripe.checkout.Session, "create", failing_create)

    with pytest.raises(PaymentError):
        service.create_topup_session(7, Decimal("50"))


def paid_session(**overrides):
    values = {
        "id": "cs_1",
        "client_reference_id": "7",
        "status": "complete",
        "payment_status": "paid",
        "amount_total": 14999,
        "metadata": {"type": "booking", "userId": "7"},
    }
    values.update(overrides)
    return checkout_session(values)


def test_paid_session_is_verified(service):
    verification = service.verification_from_session(paid_session(), 7)

    assert verification.success is True
    assert verification.type == PaymentType.BOOKING
    assert verification.amount == Decimal("149.99")


def test_topup_session_type_comes_from_metadata(service):
    verification = service.verification_from_session(
        paid_session(amount_total=5000, metadata={"type": "topup", "userId": "7"}), 7
    )

    assert verification.type == PaymentType.TOPUP
    assert verification.amount == Decimal("50.00")


def test_session_of_another_user_is_rejected(service):
    verification = service.verification_from_session(
        paid_session(client_reference_id="8"), 7
    )

    assert verification.success is False
    assert "another user" in verification.error


def test_expired_session_is_rejected(service):
    verification = service.verification_from_session(
        checkout_session({"id": "cs_1", "client_reference_id": "7", "status": "expired"}),
        7,
    )

    assert verification.success is False


def test_unpaid_session_is_pending(service):
    with pytest.raises(PaymentPending):
        service.verification_from_session(
            paid_session(status="open", payment_status="unpaid"), 7
        )


def test_verify_payment_reads_retrieved_session(service, monkeypatch):
    monkeypatch.setattr(
        stripe.checkout.Session, "retrieve", lambda session_id: paid_session(id=session_id)
    )

    verification = service.verify_payment("cs_1", 7)

    assert verification.success is True
    assert verification.amount == Decimal("149.99")


def test_connection_error_is_pending(service, monkeypatch):
    def unreachable(session_id):
        raise stripe.APIConnectionError("Network down")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", unreachable)

    with pytest.raises(PaymentPending):
        service.verify_payment("cs_1", 7)


def test_unknown_session_is_not_verified(service, monkeypatch):
    def not_found(session_id):
        raise stripe.InvalidRequestError("No such checkout.session", "id")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", not_found)

    verification = service.verify_payment("cs_missing", 7)

    assert verification.success is False
    assert verification.error == "Payment verification failed"
