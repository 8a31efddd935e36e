from .booking_status import BookingStatus, FinalizeStatus, PaymentStatus
from .surgery_booking import SurgeryBooking
from .journey import Journey

__all__ = [
    "BookingStatus",
    "FinalizeStatus",
    "PaymentStatus",
    "SurgeryBooking",
    "Journey",
]
