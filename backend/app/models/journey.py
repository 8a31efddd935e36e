import uuid

from sqlalchemy import JSON, Column, Enum as SAEnum, Integer, String

from .base import BaseModel
from .booking_status import FinalizeStatus


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


class Journey(BaseModel):
    """Persisted snapshot of one patient's booking journey.

    The row mirrors :class:`app.schemas.journey.JourneyState`; all transitions
    happen in :mod:`app.services.journey_controller` and the row is only
    overwritten with the resulting snapshot.
    """

    __tablename__ = "journeys"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    step_index = Column(Integer, nullable=False, default=0)
    context = Column(JSON, nullable=False, default=dict)
    finalize_status = Column(
        SAEnum(FinalizeStatus, name="journeyfinalizestatus", values_callable=_enum_values),
        nullable=False,
        default=FinalizeStatus.REVIEW,
    )
    handled_action_ids = Column(JSON, nullable=False, default=list)
