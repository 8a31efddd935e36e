from typing import List
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..crud.crud_booking import BookingStateError
from ..utils.errors import error_response
from .dependencies import get_db

router = APIRouter(tags=["bookings"])
logger = logging.getLogger(__name__)


@router.get("/bookings/{booking_id}", response_model=schemas.BookingRead)
def read_booking(booking_id: str, db: Session = Depends(get_db)):
    db_booking = crud.booking.get_booking(db, booking_id)
    if db_booking is None:
        raise error_response("Booking not found", {"booking_id": "not_found"}, status.HTTP_404_NOT_FOUND)
    return db_booking


@router.get("/patients/{patient_id}/bookings", response_model=List[schemas.BookingRead])
def read_patient_bookings(patient_id: str, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.booking.get_bookings_by_patient(db, patient_id, skip=skip, limit=limit)


@router.post("/bookings/{booking_id}/cancel", response_model=schemas.BookingRead)
def cancel_booking(booking_id: str, db: Session = Depends(get_db)):
    try:
        db_booking = crud.booking.cancel_booking(db, booking_id)
    except BookingStateError as exc:
        raise error_response(str(exc), {"status": "invalid_transition"}, status.HTTP_409_CONFLICT)
    if db_booking is None:
        raise error_response("Booking not found", {"booking_id": "not_found"}, status.HTTP_404_NOT_FOUND)
    logger.info("Booking %s cancelled", booking_id)
    return db_booking
