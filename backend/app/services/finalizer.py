"""Two-phase confirmation for a completed journey.

REVIEW -> BOOKED -> PAID. ``submit_booking`` places the booking through the
booking collaborator and moves to BOOKED; ``pay_deposit`` collects the
deposit recorded on the booking and moves to PAID, which is terminal. A
failed submission leaves the journey in REVIEW so the patient can try again;
the idempotency key sent with every submission makes those retries safe.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime
from typing import Callable, Optional

from ..schemas.booking import Itinerary, PaymentReceipt, SubmissionPayload
from ..schemas.journey import BookingContext, BookingRef, FinalizeStatus, JourneyState, Stage
from .journey_controller import current_stage
from .journey_errors import (
    BookingSubmissionError,
    ContributionValidationError,
    InvalidFinalizeTransitionError,
)
from .pricing import price_for_context

logger = logging.getLogger(__name__)

CreateBooking = Callable[[SubmissionPayload], BookingRef]
PayDeposit = Callable[[str], PaymentReceipt]

_REQUIRED_FOR_SUBMISSION = ("patient_id", "surgery", "surgeon", "hospital")


def idempotency_key(context: BookingContext) -> str:
    """Stable key for one (patient, surgery, surgeon, implant, hospital) choice."""
    parts = [
        context.patient_id or "",
        context.surgery.id if context.surgery else "",
        context.surgeon.id if context.surgeon else "",
        context.implant.id if context.implant else "",
        context.hospital.id if context.hospital else "",
    ]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def build_submission_payload(
    context: BookingContext,
    preferred_surgery_date: Optional[datetime] = None,
    special_requirements: Optional[str] = None,
) -> SubmissionPayload:
    missing = [key for key in _REQUIRED_FOR_SUBMISSION if getattr(context, key) is None]
    if missing:
        raise ContributionValidationError(
            f"Cannot submit booking without {', '.join(missing)}",
            field=missing[0],
        )
    price = price_for_context(context)
    return SubmissionPayload(
        patient_id=context.patient_id,
        surgery_id=context.surgery.id,
        surgeon_id=context.surgeon.id,
        implant_id=context.implant.id if context.implant else None,
        hospital_id=context.hospital.id,
        total_cost=price.total,
        advance_payment=price.deposit,
        currency=price.currency,
        idempotency_key=idempotency_key(context),
        preferred_surgery_date=preferred_surgery_date,
        special_requirements=special_requirements,
    )


def _require_finalize_stage(state: JourneyState) -> None:
    stage = current_stage(state)
    if stage != Stage.FINALIZE:
        raise InvalidFinalizeTransitionError(
            f"Journey is at {stage.name}; booking can only be placed at FINALIZE",
            field="step_index",
        )


def submit_booking(
    state: JourneyState,
    create_booking: CreateBooking,
    preferred_surgery_date: Optional[datetime] = None,
    special_requirements: Optional[str] = None,
) -> JourneyState:
    _require_finalize_stage(state)
    if state.finalize_status != FinalizeStatus.REVIEW:
        raise InvalidFinalizeTransitionError(
            f"Booking already placed (status {state.finalize_status.value})"
        )
    payload = build_submission_payload(
        state.context,
        preferred_surgery_date=preferred_surgery_date,
        special_requirements=special_requirements,
    )
    try:
        booking = create_booking(payload)
    except Exception as exc:
        logger.error(
            "Booking submission failed for patient %s: %s",
            payload.patient_id,
            exc,
            exc_info=True,
        )
        raise BookingSubmissionError("Booking could not be created; please try again") from exc

    logger.info("Booking %s placed for patient %s", booking.id, payload.patient_id)
    return state.model_copy(
        update={
            "context": state.context.model_copy(update={"booking": booking}),
            "finalize_status": FinalizeStatus.BOOKED,
        }
    )


def pay_deposit(state: JourneyState, pay: PayDeposit) -> tuple[JourneyState, PaymentReceipt]:
    if state.finalize_status != FinalizeStatus.BOOKED or state.context.booking is None:
        raise InvalidFinalizeTransitionError(
            f"Deposit can only be paid for a placed booking (status {state.finalize_status.value})"
        )
    # The collaborator charges the deposit stored with the booking.
    receipt = pay(state.context.booking.id)
    booking = state.context.booking.model_copy(update={"status": "confirmed"})
    new_state = state.model_copy(
        update={
            "context": state.context.model_copy(update={"booking": booking}),
            "finalize_status": FinalizeStatus.PAID,
        }
    )
    return new_state, receipt


def itinerary(state: JourneyState) -> Itinerary:
    context = state.context
    if context.booking is None:
        raise InvalidFinalizeTransitionError("No booking has been placed yet")
    return Itinerary(
        booking_id=context.booking.id,
        patient_id=context.patient_id,
        surgery_name=context.surgery.name,
        surgeon_name=context.surgeon.name,
        implant_name=context.implant.name if context.implant else None,
        hospital_name=context.hospital.name,
        price=price_for_context(context),
    )
