import uuid

from sqlalchemy import Column, DateTime, Enum as SAEnum, Numeric, String, Text

from .base import BaseModel
from .booking_status import BookingStatus, PaymentStatus


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


class SurgeryBooking(BaseModel):
    """A finalized journey submission.

    ``idempotency_key`` is derived from the selected patient/surgery/surgeon/
    implant/hospital tuple so a retried submission resolves to the same row.
    Only live bookings hold it; cancelling clears the key.
    """

    __tablename__ = "surgery_bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    idempotency_key = Column(String(64), nullable=True, unique=True, index=True)
    patient_id = Column(String, nullable=False, index=True)
    surgery_id = Column(String, nullable=False)
    surgeon_id = Column(String, nullable=False, index=True)
    # Either a catalog implant id, the "surgeon_choice" sentinel, or NULL
    implant_id = Column(String, nullable=True)
    hospital_id = Column(String, nullable=False)

    status = Column(
        SAEnum(BookingStatus, name="surgerybookingstatus", values_callable=_enum_values),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )
    payment_status = Column(
        SAEnum(PaymentStatus, name="surgerypaymentstatus", values_callable=_enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    currency = Column(String(3), nullable=False, default="INR")
    total_cost = Column(Numeric(12, 2), nullable=False)
    advance_payment = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    remaining_amount = Column(Numeric(12, 2), nullable=True)
    payment_id = Column(String, nullable=True)

    preferred_surgery_date = Column(DateTime, nullable=True)
    special_requirements = Column(Text, nullable=True)

    confirmed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
