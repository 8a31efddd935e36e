from datetime import datetime
from decimal import Decimal

from freezegun import freeze_time
import pytest

from app import crud
from app.crud.crud_booking import BookingStateError
from app.models import BookingStatus, PaymentStatus
from app.schemas.booking import SubmissionPayload


def _payload(**overrides):
    data = dict(
        patient_id="P1",
        surgery_id="1",
        surgeon_id="dr-1",
        implant_id="knee-premium",
        hospital_id="h-1",
        total_cost=Decimal("595000"),
        advance_payment=Decimal("29750"),
        currency="INR",
        idempotency_key="a" * 64,
    )
    data.update(overrides)
    return SubmissionPayload(**data)


def test_create_booking_defaults(db_session):
    row = crud.booking.create_booking(db_session, _payload())
    assert row.status == BookingStatus.PENDING
    assert row.payment_status == PaymentStatus.PENDING
    assert Decimal(str(row.remaining_amount)) == Decimal("595000")
    assert Decimal(str(row.paid_amount)) == Decimal("0")


def test_repeated_submission_returns_same_row(db_session):
    first = crud.booking.create_booking(db_session, _payload())
    second = crud.booking.create_booking(db_session, _payload())
    assert first.id == second.id
    assert len(crud.booking.get_bookings_by_patient(db_session, "P1")) == 1


def test_different_keys_create_different_rows(db_session):
    crud.booking.create_booking(db_session, _payload())
    crud.booking.create_booking(db_session, _payload(idempotency_key="b" * 64, hospital_id="h-2"))
    assert len(crud.booking.get_bookings_by_patient(db_session, "P1")) == 2


@freeze_time("2025-03-01 09:30:00")
def test_mark_deposit_paid_confirms_booking(db_session):
    row = crud.booking.create_booking(db_session, _payload())
    paid = crud.booking.mark_deposit_paid(db_session, row.id)
    assert paid.status == BookingStatus.CONFIRMED
    assert paid.payment_status == PaymentStatus.PAID
    assert Decimal(str(paid.remaining_amount)) == Decimal("565250")
    assert paid.payment_id.startswith("sim_")
    assert paid.confirmed_at == datetime(2025, 3, 1, 9, 30)


def test_paying_twice_is_a_no_op(db_session):
    row = crud.booking.create_booking(db_session, _payload())
    first = crud.booking.mark_deposit_paid(db_session, row.id)
    payment_id = first.payment_id
    second = crud.booking.mark_deposit_paid(db_session, row.id)
    assert second.payment_id == payment_id


def test_pay_unknown_booking(db_session):
    with pytest.raises(LookupError):
        crud.booking.mark_deposit_paid(db_session, "missing")


def test_cancelled_booking_cannot_be_paid(db_session):
    row = crud.booking.create_booking(db_session, _payload())
    cancelled = crud.booking.cancel_booking(db_session, row.id)
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancelled_at is not None
    with pytest.raises(BookingStateError):
        crud.booking.mark_deposit_paid(db_session, row.id)


def test_completed_booking_cannot_be_cancelled(db_session):
    row = crud.booking.create_booking(db_session, _payload())
    row.status = BookingStatus.COMPLETED
    db_session.commit()
    with pytest.raises(BookingStateError):
        crud.booking.cancel_booking(db_session, row.id)


def test_cancel_missing_booking_returns_none(db_session):
    assert crud.booking.cancel_booking(db_session, "missing") is None


def test_deposit_charged_is_the_stored_advance_payment(db_session):
    row = crud.booking.create_booking(
        db_session, _payload(total_cost=Decimal("310000"), advance_payment=Decimal("15500"))
    )
    paid = crud.booking.mark_deposit_paid(db_session, row.id)
    assert Decimal(str(paid.paid_amount)) == Decimal("15500")
    assert Decimal(str(paid.remaining_amount)) == Decimal("294500")


def test_cancel_releases_idempotency_key(db_session):
    row = crud.booking.create_booking(db_session, _payload())
    crud.booking.cancel_booking(db_session, row.id)
    assert row.idempotency_key is None
    assert crud.booking.get_by_idempotency_key(db_session, "a" * 64) is None


def test_resubmission_after_cancel_creates_new_booking(db_session):
    first = crud.booking.create_booking(db_session, _payload())
    crud.booking.cancel_booking(db_session, first.id)

    second = crud.booking.create_booking(db_session, _payload())
    assert second.id != first.id
    assert second.status == BookingStatus.PENDING
    assert second.idempotency_key == "a" * 64
    paid = crud.booking.mark_deposit_paid(db_session, second.id)
    assert paid.status == BookingStatus.CONFIRMED


@pytest.mark.parametrize("stale", [BookingStatus.CANCELLED, BookingStatus.COMPLETED])
def test_stale_row_still_holding_key_is_not_reused(db_session, stale):
    first = crud.booking.create_booking(db_session, _payload())
    first.status = stale
    db_session.commit()

    second = crud.booking.create_booking(db_session, _payload())
    assert second.id != first.id
    db_session.refresh(first)
    assert first.idempotency_key is None
    assert first.status == stale


def test_confirmed_booking_answers_resubmission(db_session):
    first = crud.booking.create_booking(db_session, _payload())
    crud.booking.mark_deposit_paid(db_session, first.id)
    assert crud.booking.create_booking(db_session, _payload()).id == first.id
