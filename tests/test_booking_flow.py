"""
Tests del flujo completo de reserva: slots -> costo -> capacidad -> pago -> reservas
"""
import pytest
from datetime import timedelta
from decimal import Decimal

from app.crud import wallet as wallet_crud
from app.models.availability import Availability
from app.models.booking import Booking
from app.models.checkout_staging import CheckoutStaging
from app.schemas.booking import SelectedSlot, SubmissionStatus
from app.schemas.payment import PaymentType
from app.services.booking_committer import commit_bookings
from app.services.booking_flow import submit_booking
from app.utils.slot_resolver import fold_windows
from app.utils.booking_errors import BookingTooSoon, PaymentError, PastBooking, SlotFull
from app.utils.timezone import local_today


def add_existing_bookings(db, user, window, count):
    for _ in range(count):
        db.add(
            Booking(
                user_id=user.id,
                location_id=window.location_id,
                start_time=window.start_time,
                end_time=window.end_time,
                credit_cost=Decimal("149.99"),
                service_name=window.service_name,
            )
        )
    db.commit()


def test_wallet_booking_creates_one_booking(db, student, location, make_window, gateway):
    """
    Test: Saldo suficiente, ventana vacía -> una reserva, sin checkout,
    la ventana sigue libre
    """
    window = make_window(location, 10)

    result = submit_booking(
        db, student, [SelectedSlot(availability_id=window.id)], gateway=gateway
    )

    assert result.status == SubmissionStatus.CONFIRMED
    assert result.title == "Booking Confirmed!"
    assert "Duration: 1.0 hour" in result.message
    assert result.checkout_url is None
    assert len(result.bookings) == 1
    assert result.bookings[0].credit_cost == Decimal("149.99")
    assert result.summary.count == 1
    assert result.summary.total_cost == Decimal("149.99")
    assert gateway.created == []

    assert db.query(Booking).count() == 1
    db.refresh(window)
    assert window.is_booked is False
    assert wallet_crud.get_wallet_balance(db, student.id) == Decimal("350.01")


def test_last_place_marks_window_booked(db, student, coach, location, make_window, gateway):
    """
    Test: Con 9 reservas y capacidad 10, la nueva reserva completa la ventana
    """
    window = make_window(location, 10)
    add_existing_bookings(db, coach, window, 9)

    result = submit_booking(
        db, student, [SelectedSlot(availability_id=window.id)], gateway=gateway
    )

    assert result.status == SubmissionStatus.CONFIRMED
    assert db.query(Booking).count() == 10
    db.refresh(window)
    assert window.is_booked is True


def test_insufficient_balance_redirects_to_checkout(
    db, broke_student, location, make_window, gateway
):
    """
    Test: Saldo insuficiente -> sesión de checkout, intents guardados, sin reservas
    """
    window = make_window(location, 10, service_name="Stroke Clinic")

    result = submit_booking(
        db, broke_student, [SelectedSlot(availability_id=window.id)], gateway=gateway
    )

    assert result.status == SubmissionStatus.PAYMENT_REQUIRED
    assert result.checkout_url == "https://checkout.stripe.test/pay"
    assert result.session_id == "cs_test_1"
    assert result.bookings == []

    assert gateway.created[0]["amount"] == Decimal("99.99")
    assert gateway.created[0]["payment_type"] == PaymentType.BOOKING
    assert gateway.created[0]["booking_data"][0]["locationId"] == location.id

    staging = db.query(CheckoutStaging).filter_by(session_id="cs_test_1").one()
    assert staging.user_id == broke_student.id
    assert staging.intents[0]["matching_availability_ids"] == [window.id]
    assert db.query(Booking).count() == 0
    assert wallet_crud.get_wallet_balance(db, broke_student.id) == Decimal("0.00")


def test_student_cannot_book_less_than_a_week_ahead(db, student, location, make_window, gateway):
    """
    Test: Dos slots a 3 días -> BookingTooSoon y ninguna reserva
    """
    soon = local_today() + timedelta(days=3)
    w10 = make_window(location, 10, day=soon)
    w11 = make_window(location, 11, day=soon)

    with pytest.raises(BookingTooSoon) as exc_info:
        submit_booking(
            db,
            student,
            [SelectedSlot(availability_id=w10.id), SelectedSlot(availability_id=w11.id)],
            gateway=gateway,
        )

    assert exc_info.value.message == "Bookings must be at least 1 week in advance."
    assert db.query(Booking).count() == 0
    assert gateway.created == []
    assert wallet_crud.get_wallet_balance(db, student.id) == Decimal("500.00")


def test_full_window_is_rejected_before_payment(
    db, student, coach, location, make_window, gateway
):
    window = make_window(location, 10, max_capacity=3)
    add_existing_bookings(db, coach, window, 3)

    with pytest.raises(SlotFull):
        submit_booking(
            db, student, [SelectedSlot(availability_id=window.id)], gateway=gateway
        )

    assert db.query(Booking).count() == 3
    assert wallet_crud.get_wallet_balance(db, student.id) == Decimal("500.00")


def test_consecutive_slots_and_two_locations(
    db, student, location, other_location, make_window, gateway
):
    """
    Test: Dos horas seguidas en una sede y una clínica en otra -> dos reservas
    cobradas con el wallet en la misma transacción
    """
    w10 = make_window(location, 10)
    w11 = make_window(location, 11)
    clinic = make_window(other_location, 15, service_name="Stroke Clinic")

    result = submit_booking(
        db,
        student,
        [
            SelectedSlot(availability_id=w10.id),
            SelectedSlot(availability_id=clinic.id),
            SelectedSlot(availability_id=w11.id),
        ],
        gateway=gateway,
    )

    assert result.status == SubmissionStatus.CONFIRMED
    assert result.summary.count == 2
    assert result.summary.duration_hours == 3.0
    assert result.summary.total_cost == Decimal("249.98")
    assert "Duration: 3.0 hours" in result.message

    first = db.query(Booking).filter_by(location_id=location.id).one()
    assert first.start_time == w10.start_time
    assert first.end_time == w11.end_time
    assert wallet_crud.get_wallet_balance(db, student.id) == Decimal("250.02")


def test_rejected_wallet_deduction_books_nothing(
    db, student, location, make_window, gateway, monkeypatch
):
    window = make_window(location, 10)
    monkeypatch.setattr(wallet_crud, "deduct_from_wallet", lambda *args: False)

    with pytest.raises(PaymentError) as exc_info:
        submit_booking(
            db, student, [SelectedSlot(availability_id=window.id)], gateway=gateway
        )

    assert "Failed to process wallet payment" in exc_info.value.message
    assert db.query(Booking).count() == 0


def test_checkout_failure_stages_nothing(db, broke_student, location, make_window, gateway):
    window = make_window(location, 10)
    gateway.fail_checkout = True

    with pytest.raises(PaymentError):
        submit_booking(
            db, broke_student, [SelectedSlot(availability_id=window.id)], gateway=gateway
        )

    assert db.query(CheckoutStaging).count() == 0
    assert db.query(Booking).count() == 0


def test_past_slot_is_rejected_before_wallet_payment(db, coach, location, make_window, gateway):
    """
    Test: Un coach no tiene la regla de 7 días, pero no puede reservar en el
    pasado; no se descuenta nada del wallet
    """
    window = make_window(location, 10, day=local_today() - timedelta(days=1))

    with pytest.raises(PastBooking):
        submit_booking(db, coach, [SelectedSlot(availability_id=window.id)], gateway=gateway)

    assert db.query(Booking).count() == 0
    assert wallet_crud.get_wallet_balance(db, coach.id) == Decimal("500.00")
    assert db.query(Availability).filter_by(id=window.id).one().is_booked is False


def test_past_slot_never_reaches_checkout(db, broke_coach, location, make_window, gateway):
    """
    Test: Sin saldo y con un slot pasado no se crea sesión de checkout
    """
    window = make_window(location, 10, day=local_today() - timedelta(days=2))

    with pytest.raises(PastBooking):
        submit_booking(
            db, broke_coach, [SelectedSlot(availability_id=window.id)], gateway=gateway
        )

    assert gateway.created == []
    assert db.query(CheckoutStaging).count() == 0


def test_commit_failure_rolls_back_wallet_deduction(db, coach, location, make_window):
    """
    Test: Si la confirmación falla, el descuento hecho en la misma sesión se revierte
    """
    window = make_window(location, 10, day=local_today() - timedelta(days=1))
    intent = fold_windows(location.id, [window])
    intent.cost = Decimal("149.99")

    assert wallet_crud.deduct_from_wallet(db, coach.id, intent.cost) is True
    with pytest.raises(PastBooking):
        commit_bookings(db, coach, [intent])

    assert db.query(Booking).count() == 0
    assert wallet_crud.get_wallet_balance(db, coach.id) == Decimal("500.00")
