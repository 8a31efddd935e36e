from .crud_booking import booking, BookingStateError
from . import crud_journey

__all__ = ["booking", "BookingStateError", "crud_journey"]
