from decimal import Decimal

import pytest

from app.schemas.booking import PaymentReceipt
from app.schemas.journey import BookingContext, BookingRef, EssentialInfo, FinalizeStatus, JourneyState, Stage
from app.services import finalizer
from app.services.journey_errors import (
    BookingSubmissionError,
    ContributionValidationError,
    InvalidFinalizeTransitionError,
)


@pytest.fixture
def ready_state(knee, surgeon, premium_implant, hospital):
    return JourneyState(
        step_index=int(Stage.FINALIZE),
        context=BookingContext(
            patient_id="P1",
            essential_info=EssentialInfo(age_bracket="35-49"),
            surgery=knee,
            surgeon=surgeon,
            implant=premium_implant,
            hospital=hospital,
        ),
    )


def _fake_pay(booking_id):
    # Stands in for the booking store, which charges the deposit it recorded.
    return PaymentReceipt(
        booking_id=booking_id,
        payment_id="sim_1",
        amount_paid=Decimal("29750"),
        remaining_amount=Decimal("565250"),
        total_cost=Decimal("595000"),
        currency="INR",
    )


def test_submission_payload_carries_ids_and_price(ready_state):
    payload = finalizer.build_submission_payload(ready_state.context)
    assert payload.patient_id == "P1"
    assert payload.surgery_id == "1"
    assert payload.surgeon_id == "dr-1"
    assert payload.implant_id == "knee-premium"
    assert payload.hospital_id == "h-1"
    assert payload.total_cost == Decimal("595000")
    assert payload.advance_payment == Decimal("29750")


def test_idempotency_key_is_stable_per_selection(ready_state, hospital):
    first = finalizer.idempotency_key(ready_state.context)
    assert first == finalizer.idempotency_key(ready_state.context)
    other = ready_state.context.model_copy(update={"hospital": hospital.model_copy(update={"id": "h-2"})})
    assert finalizer.idempotency_key(other) != first
    assert len(first) == 64


def test_review_to_booked_to_paid(ready_state):
    sent = []

    def create(payload):
        sent.append(payload)
        return BookingRef(id="B1", status="pending")

    booked = finalizer.submit_booking(ready_state, create)
    assert booked.finalize_status == FinalizeStatus.BOOKED
    assert booked.context.booking.id == "B1"
    assert len(sent) == 1

    itinerary = finalizer.itinerary(booked)
    assert itinerary.booking_id == "B1"
    assert itinerary.price.deposit == Decimal("29750")

    paid, receipt = finalizer.pay_deposit(booked, _fake_pay)
    assert paid.finalize_status == FinalizeStatus.PAID
    assert paid.context.booking.status == "confirmed"
    assert receipt.amount_paid == Decimal("29750")
    assert receipt.remaining_amount == Decimal("565250")


def test_failed_submission_stays_in_review(ready_state, caplog):
    def create(payload):
        raise ConnectionError("booking service down")

    with pytest.raises(BookingSubmissionError):
        finalizer.submit_booking(ready_state, create)
    assert ready_state.finalize_status == FinalizeStatus.REVIEW
    assert ready_state.context.booking is None
    assert any("Booking submission failed" in r.getMessage() for r in caplog.records)


def test_retry_after_failure_sends_same_key(ready_state):
    keys = []

    def flaky(payload):
        keys.append(payload.idempotency_key)
        if len(keys) == 1:
            raise TimeoutError("slow")
        return BookingRef(id="B1", status="pending")

    with pytest.raises(BookingSubmissionError):
        finalizer.submit_booking(ready_state, flaky)
    booked = finalizer.submit_booking(ready_state, flaky)
    assert booked.finalize_status == FinalizeStatus.BOOKED
    assert keys[0] == keys[1]


def test_cannot_submit_twice(ready_state):
    booked = finalizer.submit_booking(ready_state, lambda p: BookingRef(id="B1", status="pending"))
    with pytest.raises(InvalidFinalizeTransitionError):
        finalizer.submit_booking(booked, lambda p: BookingRef(id="B2", status="pending"))


def test_cannot_pay_before_booking(ready_state):
    with pytest.raises(InvalidFinalizeTransitionError):
        finalizer.pay_deposit(ready_state, _fake_pay)


def test_paid_is_terminal(ready_state):
    booked = finalizer.submit_booking(ready_state, lambda p: BookingRef(id="B1", status="pending"))
    paid, _ = finalizer.pay_deposit(booked, _fake_pay)
    with pytest.raises(InvalidFinalizeTransitionError):
        finalizer.pay_deposit(paid, _fake_pay)
    with pytest.raises(InvalidFinalizeTransitionError):
        finalizer.submit_booking(paid, lambda p: BookingRef(id="B3", status="pending"))


def test_submit_requires_finalize_stage(ready_state):
    early = ready_state.model_copy(update={"step_index": int(Stage.FACILITY)})
    with pytest.raises(InvalidFinalizeTransitionError):
        finalizer.submit_booking(early, lambda p: BookingRef(id="B1", status="pending"))


def test_submit_requires_complete_context(ready_state):
    incomplete = ready_state.model_copy(
        update={"context": ready_state.context.model_copy(update={"surgeon": None})}
    )
    with pytest.raises(ContributionValidationError) as exc:
        finalizer.submit_booking(incomplete, lambda p: BookingRef(id="B1", status="pending"))
    assert exc.value.field == "surgeon"


def test_pay_deposit_does_not_reprice(ready_state, monkeypatch):
    booked = finalizer.submit_booking(ready_state, lambda p: BookingRef(id="B1", status="pending"))
    charged = []

    def pay(booking_id):
        charged.append(booking_id)
        return _fake_pay(booking_id)

    def no_pricing(context, policy=None):
        raise AssertionError("deposit must come from the stored booking")

    monkeypatch.setattr(finalizer, "price_for_context", no_pricing)
    paid, receipt = finalizer.pay_deposit(booked, pay)
    assert charged == ["B1"]
    assert receipt.amount_paid == Decimal("29750")
    assert paid.finalize_status == FinalizeStatus.PAID
