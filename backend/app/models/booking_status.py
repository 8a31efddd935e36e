import enum


class BookingStatus(str, enum.Enum):
    """Lifecycle of a stored surgery booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class FinalizeStatus(str, enum.Enum):
    """Confirmation sub-state of a journey at FINALIZE: review -> booked -> paid."""
    REVIEW = "review"
    BOOKED = "booked"
    PAID = "paid"
