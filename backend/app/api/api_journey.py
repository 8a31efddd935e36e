from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
import logging

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..crud import crud_journey
from ..crud.crud_booking import BookingStateError
from ..schemas.catalog import Addon, AddonTier, Facility
from ..schemas.journey import ContextContribution, JourneyState
from ..services import finalizer
from ..services.addon_recommendation import AddonSelectionMethod, recommend_addon, recommended_tier
from ..services.identity_service import IdentityCreationError, IdentityForm, create_identity
from ..services.journey_controller import apply_command, current_stage, defer_addon, skip_identity
from ..services.journey_errors import (
    BookingSubmissionError,
    ContributionValidationError,
    JourneyError,
    ResumeSignalError,
    StepOutOfRangeError,
)
from ..services.pricing import compute_price, price_for_context
from ..services.resume_adapter import seed_journey
from ..utils.errors import error_response, journey_error_response
from .dependencies import get_db, get_journey_or_404

router = APIRouter(tags=["journeys"])
logger = logging.getLogger(__name__)

ZONE_LABELS = {1: "Premium amenities", 2: "Mid-range", 3: "Essential care"}


class JourneyCreate(BaseModel):
    resume: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Handoff from the registration flow: {step, patientId, patientData, enhanced}.",
    )


class IdentityStepResponse(BaseModel):
    journey: schemas.JourneyRead
    degraded: bool = False
    notice: Optional[str] = None


class AddonRecommendationIn(BaseModel):
    catalog: List[Addon]


class AddonRecommendationOut(BaseModel):
    method: AddonSelectionMethod = AddonSelectionMethod.RECOMMENDED
    tier: AddonTier
    addon: Optional[Addon] = None


class FacilityPreviewIn(BaseModel):
    facilities: List[Facility]


def _journey_read(db_journey: models.Journey, state: JourneyState) -> schemas.JourneyRead:
    try:
        stage = current_stage(state).name
    except StepOutOfRangeError:
        stage = None
    return schemas.JourneyRead(
        id=db_journey.id,
        step_index=state.step_index,
        stage=stage,
        context=state.context,
        finalize_status=state.finalize_status,
    )


def _transition(
    db: Session,
    db_journey: models.Journey,
    step: Callable[[JourneyState], JourneyState],
) -> schemas.JourneyRead:
    state = crud_journey.to_state(db_journey)
    try:
        new_state = step(state)
    except ContributionValidationError as exc:
        raise journey_error_response(exc, status.HTTP_422_UNPROCESSABLE_ENTITY)
    except JourneyError as exc:
        raise journey_error_response(exc)
    if new_state is not state:
        crud_journey.save_state(db, db_journey, new_state)
    return _journey_read(db_journey, new_state)


def _apply(db: Session, db_journey: models.Journey, command) -> schemas.JourneyRead:
    return _transition(db, db_journey, lambda state: apply_command(state, command))


@router.post("/journeys", response_model=schemas.JourneyRead, status_code=status.HTTP_201_CREATED)
def create_journey(payload: Optional[JourneyCreate] = None, db: Session = Depends(get_db)):
    """Start a journey, optionally resuming from a registration handoff."""
    try:
        state = seed_journey(payload.resume if payload else None)
    except (ResumeSignalError, StepOutOfRangeError) as exc:
        raise journey_error_response(exc, status.HTTP_422_UNPROCESSABLE_ENTITY)
    db_journey = crud_journey.create_journey(db, state)
    logger.info("Created journey %s at step %s", db_journey.id, state.step_index)
    return _journey_read(db_journey, state)


@router.get("/journeys/{journey_id}", response_model=schemas.JourneyRead)
def read_journey(db_journey: models.Journey = Depends(get_journey_or_404)):
    return _journey_read(db_journey, crud_journey.to_state(db_journey))


@router.post("/journeys/{journey_id}/commands", response_model=schemas.JourneyRead)
def dispatch_command(
    command: schemas.JourneyCommandUnion = Body(..., discriminator="type"),
    db_journey: models.Journey = Depends(get_journey_or_404),
    db: Session = Depends(get_db),
):
    return _apply(db, db_journey, command)


@router.post("/journeys/{journey_id}/skip-identity", response_model=schemas.JourneyRead)
def skip_identity_step(
    patient_id: str = Query(..., min_length=1, max_length=64),
    action_id: Optional[str] = None,
    db_journey: models.Journey = Depends(get_journey_or_404),
    db: Session = Depends(get_db),
):
    """Jump to QUALIFYING for a patient already registered under ``patient_id``."""
    return _transition(db, db_journey, lambda state: skip_identity(state, patient_id, action_id))


@router.post("/journeys/{journey_id}/addons/defer", response_model=schemas.JourneyRead)
def defer_addon_choice(
    action_id: Optional[str] = None,
    db_journey: models.Journey = Depends(get_journey_or_404),
    db: Session = Depends(get_db),
):
    """Leave the implant to the surgeon and move on to hospital selection."""
    return _apply(db, db_journey, defer_addon(action_id))


@router.post("/journeys/{journey_id}/identity", response_model=IdentityStepResponse)
async def capture_identity(
    form: IdentityForm,
    action_id: Optional[str] = None,
    db_journey: models.Journey = Depends(get_journey_or_404),
    db: Session = Depends(get_db),
):
    state = crud_journey.to_state(db_journey)
    if state.step_index != schemas.Stage.IDENTITY:
        raise error_response(
            "Identity can only be captured at the IDENTITY stage",
            {"step_index": str(state.step_index)},
            status.HTTP_409_CONFLICT,
        )
    try:
        identity = await create_identity(form)
    except IdentityCreationError as exc:
        raise error_response(str(exc), {"identity": "unavailable"}, status.HTTP_503_SERVICE_UNAVAILABLE)
    command = schemas.AdvanceCommand(
        contribution=ContextContribution(
            patient_id=identity.patient_id,
            patient_data=identity.patient_data,
        ),
        action_id=action_id,
    )
    journey = _apply(db, db_journey, command)
    notice = None
    if identity.degraded:
        notice = "Registration is temporarily unavailable; we saved your details under a temporary ID."
    return IdentityStepResponse(journey=journey, degraded=identity.degraded, notice=notice)


@router.get("/journeys/{journey_id}/price", response_model=schemas.PriceBreakdown)
def read_price(db_journey: models.Journey = Depends(get_journey_or_404)):
    state = crud_journey.to_state(db_journey)
    try:
        return price_for_context(state.context)
    except JourneyError as exc:
        raise journey_error_response(exc)


@router.post("/journeys/{journey_id}/addons/recommendation", response_model=AddonRecommendationOut)
def recommend_journey_addon(
    payload: AddonRecommendationIn,
    db_journey: models.Journey = Depends(get_journey_or_404),
):
    """Pre-select an implant for the patient's age bracket from ``catalog``."""
    state = crud_journey.to_state(db_journey)
    info = state.context.essential_info
    if info is None:
        raise error_response(
            "Qualifying questions must be answered before a recommendation",
            {"essential_info": "missing"},
            status.HTTP_409_CONFLICT,
        )
    return AddonRecommendationOut(
        tier=recommended_tier(info.age_bracket),
        addon=recommend_addon(info.age_bracket, payload.catalog),
    )


@router.post("/journeys/{journey_id}/facilities/preview", response_model=List[schemas.ZoneGroup])
def preview_facilities(
    payload: FacilityPreviewIn,
    db_journey: models.Journey = Depends(get_journey_or_404),
):
    """Group ``facilities`` by zone with the price each one would produce."""
    context = crud_journey.to_state(db_journey).context
    groups: Dict[int, List[schemas.FacilityPreview]] = {}
    for facility in payload.facilities:
        price = compute_price(
            facility,
            implant=context.implant,
            surgery=context.surgery,
            surgeon=context.surgeon,
        )
        groups.setdefault(facility.zone, []).append(
            schemas.FacilityPreview(facility=facility, price=price)
        )
    return [
        schemas.ZoneGroup(zone=zone, label=ZONE_LABELS.get(zone, f"Zone {zone}"), facilities=groups[zone])
        for zone in sorted(groups)
    ]


@router.post("/journeys/{journey_id}/finalize", response_model=schemas.FinalizeResponse)
def finalize_journey(
    payload: Optional[schemas.FinalizeRequest] = None,
    db_journey: models.Journey = Depends(get_journey_or_404),
    db: Session = Depends(get_db),
):
    state = crud_journey.to_state(db_journey)
    payload = payload or schemas.FinalizeRequest()

    def _create_booking(submission: schemas.SubmissionPayload) -> schemas.BookingRef:
        row = crud.booking.create_booking(db, submission)
        return schemas.BookingRef(id=row.id, status=row.status.value)

    try:
        new_state = finalizer.submit_booking(
            state,
            _create_booking,
            preferred_surgery_date=payload.preferred_surgery_date,
            special_requirements=payload.special_requirements,
        )
    except BookingSubmissionError as exc:
        db.rollback()
        raise journey_error_response(exc, status.HTTP_502_BAD_GATEWAY)
    except ContributionValidationError as exc:
        raise journey_error_response(exc, status.HTTP_422_UNPROCESSABLE_ENTITY)
    except JourneyError as exc:
        raise journey_error_response(exc)
    crud_journey.save_state(db, db_journey, new_state)
    return schemas.FinalizeResponse(
        journey_id=db_journey.id,
        finalize_status=new_state.finalize_status.value,
        itinerary=finalizer.itinerary(new_state),
    )


@router.post("/journeys/{journey_id}/pay", response_model=schemas.FinalizeResponse)
def pay_journey_deposit(
    db_journey: models.Journey = Depends(get_journey_or_404),
    db: Session = Depends(get_db),
):
    """Collect the deposit for a placed booking (simulated gateway)."""
    state = crud_journey.to_state(db_journey)

    def _pay(booking_id: str) -> schemas.PaymentReceipt:
        row = crud.booking.mark_deposit_paid(db, booking_id)
        return schemas.PaymentReceipt(
            booking_id=row.id,
            payment_id=row.payment_id,
            amount_paid=Decimal(str(row.paid_amount)),
            remaining_amount=Decimal(str(row.remaining_amount)),
            total_cost=Decimal(str(row.total_cost)),
            currency=row.currency,
            paid_at=row.confirmed_at,
        )

    try:
        new_state, receipt = finalizer.pay_deposit(state, _pay)
    except JourneyError as exc:
        raise journey_error_response(exc)
    except BookingStateError as exc:
        raise error_response(str(exc), {"booking": "invalid_status"}, status.HTTP_409_CONFLICT)
    except LookupError as exc:
        raise error_response(str(exc), {"booking": "not_found"}, status.HTTP_404_NOT_FOUND)
    crud_journey.save_state(db, db_journey, new_state)
    return schemas.FinalizeResponse(
        journey_id=db_journey.id,
        finalize_status=new_state.finalize_status.value,
        receipt=receipt,
    )
