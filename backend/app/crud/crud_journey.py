from typing import Optional

from sqlalchemy.orm import Session

from .. import models
from ..schemas.journey import JourneyState


def to_state(db_journey: models.Journey) -> JourneyState:
    return JourneyState.model_validate(
        {
            "step_index": db_journey.step_index,
            "context": db_journey.context or {},
            "finalize_status": db_journey.finalize_status,
            "handled_action_ids": tuple(db_journey.handled_action_ids or ()),
        }
    )


def _columns(state: JourneyState) -> dict:
    return {
        "step_index": state.step_index,
        "context": state.context.model_dump(mode="json", exclude_none=True),
        "finalize_status": state.finalize_status,
        "handled_action_ids": list(state.handled_action_ids),
    }


def get_journey(db: Session, journey_id: str) -> Optional[models.Journey]:
    return db.query(models.Journey).filter(models.Journey.id == journey_id).first()


def create_journey(db: Session, state: JourneyState) -> models.Journey:
    db_journey = models.Journey(**_columns(state))
    db.add(db_journey)
    db.commit()
    db.refresh(db_journey)
    return db_journey


def save_state(db: Session, db_journey: models.Journey, state: JourneyState) -> models.Journey:
    """Overwrite the stored snapshot with ``state``."""
    for key, value in _columns(state).items():
        setattr(db_journey, key, value)
    db.commit()
    db.refresh(db_journey)
    return db_journey
