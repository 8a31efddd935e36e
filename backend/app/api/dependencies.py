from fastapi import Depends, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Journey
from ..crud import crud_journey
from ..utils.errors import error_response


def get_journey_or_404(journey_id: str, db: Session = Depends(get_db)) -> Journey:
    db_journey = crud_journey.get_journey(db, journey_id)
    if db_journey is None:
        raise error_response(
            "Journey not found",
            {"journey_id": "not_found"},
            status.HTTP_404_NOT_FOUND,
        )
    return db_journey


__all__ = ["get_db", "get_journey_or_404"]
