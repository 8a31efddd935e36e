from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from decimal import Decimal
import logging
import uuid

from .. import models, schemas
from ..models.base import utcnow
from ..models.booking_status import BookingStatus, PaymentStatus

logger = logging.getLogger(__name__)


class BookingStateError(Exception):
    """The requested change is not allowed for the booking's current status."""


_LIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class CRUDSurgeryBooking:
    def get_booking(self, db: Session, booking_id: str) -> Optional[models.SurgeryBooking]:
        return db.query(models.SurgeryBooking).filter(models.SurgeryBooking.id == booking_id).first()

    def get_by_idempotency_key(self, db: Session, key: str) -> Optional[models.SurgeryBooking]:
        return (
            db.query(models.SurgeryBooking)
            .filter(models.SurgeryBooking.idempotency_key == key)
            .first()
        )

    def get_bookings_by_patient(
        self, db: Session, patient_id: str, skip: int = 0, limit: int = 100
    ) -> List[models.SurgeryBooking]:
        return (
            db.query(models.SurgeryBooking)
            .filter(models.SurgeryBooking.patient_id == patient_id)
            .order_by(models.SurgeryBooking.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create_booking(self, db: Session, payload: schemas.SubmissionPayload) -> models.SurgeryBooking:
        """Insert a booking, or return the live one already stored for this key.

        Only pending or confirmed bookings answer a repeated submission. A key
        still held by a cancelled or completed row is released so the same
        selection can be booked again.
        """
        existing = self.get_by_idempotency_key(db, payload.idempotency_key)
        if existing is not None and existing.status not in _LIVE_STATUSES:
            logger.info(
                "Releasing key %s held by %s booking %s",
                payload.idempotency_key[:12],
                existing.status.value,
                existing.id,
            )
            existing.idempotency_key = None
            db.commit()
            existing = None
        if existing:
            logger.info(
                "Reusing booking %s for repeated submission %s",
                existing.id,
                payload.idempotency_key[:12],
            )
            return existing

        db_booking = models.SurgeryBooking(
            **payload.model_dump(),
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            paid_amount=Decimal("0"),
            remaining_amount=payload.total_cost,
        )
        db.add(db_booking)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent retry won the insert; hand back its row.
            db.rollback()
            existing = self.get_by_idempotency_key(db, payload.idempotency_key)
            if existing is None:
                raise
            return existing
        db.refresh(db_booking)
        return db_booking

    def mark_deposit_paid(self, db: Session, booking_id: str) -> models.SurgeryBooking:
        """Record the (simulated) deposit payment and confirm the booking.

        The amount charged is the ``advance_payment`` stored when the booking
        was placed, never a figure recomputed by the caller.
        """
        db_booking = self.get_booking(db, booking_id)
        if db_booking is None:
            raise LookupError(f"Booking {booking_id} not found")
        if db_booking.status == BookingStatus.CANCELLED:
            raise BookingStateError("Cancelled bookings cannot be paid")
        if db_booking.payment_status == PaymentStatus.PAID:
            return db_booking

        paid = Decimal(str(db_booking.advance_payment))
        db_booking.paid_amount = paid
        db_booking.remaining_amount = Decimal(str(db_booking.total_cost)) - paid
        db_booking.payment_id = f"sim_{uuid.uuid4().hex[:16]}"
        db_booking.payment_status = PaymentStatus.PAID
        db_booking.status = BookingStatus.CONFIRMED
        db_booking.confirmed_at = utcnow()
        db.commit()
        db.refresh(db_booking)
        return db_booking

    def cancel_booking(self, db: Session, booking_id: str) -> Optional[models.SurgeryBooking]:
        db_booking = self.get_booking(db, booking_id)
        if db_booking is None:
            return None
        if db_booking.status == BookingStatus.COMPLETED:
            raise BookingStateError("Completed bookings cannot be cancelled")
        if db_booking.status != BookingStatus.CANCELLED:
            db_booking.status = BookingStatus.CANCELLED
            db_booking.cancelled_at = utcnow()
            # Free the key so the same selection can be booked again.
            db_booking.idempotency_key = None
            db.commit()
            db.refresh(db_booking)
        return db_booking


booking = CRUDSurgeryBooking()
