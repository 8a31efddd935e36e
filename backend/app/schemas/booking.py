from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.booking_status import BookingStatus, PaymentStatus
from .catalog import Facility


class PriceBreakdown(BaseModel):
    procedure_fee: Decimal
    provider_fee: Decimal
    addon_cost: Decimal
    facility_base_price: Decimal
    consumables_cost: Decimal
    total: Decimal
    deposit: Decimal
    currency: str
    policy: str


# Payload sent to the booking-creation collaborator
class SubmissionPayload(BaseModel):
    patient_id: str
    surgery_id: str
    surgeon_id: str
    implant_id: Optional[str] = None
    hospital_id: str
    total_cost: Decimal
    advance_payment: Decimal
    currency: str
    idempotency_key: str = Field(min_length=16)
    preferred_surgery_date: Optional[datetime] = None
    special_requirements: Optional[str] = None


class BookingRead(BaseModel):
    id: str
    patient_id: str
    surgery_id: str
    surgeon_id: str
    implant_id: Optional[str] = None
    hospital_id: str
    status: BookingStatus
    payment_status: PaymentStatus
    currency: str
    total_cost: Decimal
    advance_payment: Decimal
    paid_amount: Decimal
    remaining_amount: Optional[Decimal] = None
    payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class PaymentReceipt(BaseModel):
    booking_id: str
    payment_id: str
    amount_paid: Decimal
    remaining_amount: Decimal
    total_cost: Decimal
    currency: str
    paid_at: Optional[datetime] = None


class Itinerary(BaseModel):
    """What the patient sees after the booking is placed, before paying."""

    booking_id: str
    patient_id: str
    surgery_name: str
    surgeon_name: str
    implant_name: Optional[str] = None
    hospital_name: str
    price: PriceBreakdown


class FacilityPreview(BaseModel):
    facility: Facility
    price: PriceBreakdown


class ZoneGroup(BaseModel):
    zone: int
    label: str
    facilities: List[FacilityPreview]


class FinalizeRequest(BaseModel):
    preferred_surgery_date: Optional[datetime] = None
    special_requirements: Optional[str] = None


class FinalizeResponse(BaseModel):
    journey_id: str
    finalize_status: str
    itinerary: Optional[Itinerary] = None
    receipt: Optional[PaymentReceipt] = None
