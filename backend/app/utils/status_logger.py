import logging
from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE

from .. import models

logger = logging.getLogger(__name__)


def _listener_factory(model_name: str, attribute: str):
    """Return a SQLAlchemy attribute listener that logs value changes."""

    def _changed(target, value, oldvalue, initiator):  # noqa: ANN001
        if oldvalue is NO_VALUE or oldvalue is None or oldvalue == value:
            return value
        entity_id = getattr(target, "id", "unknown")
        logger.info(
            "%s id=%s %s changed from %s to %s",
            model_name,
            entity_id,
            attribute,
            getattr(oldvalue, "value", oldvalue),
            getattr(value, "value", value),
        )
        return value

    return _changed


_registered: dict = {}

_WATCHED = (
    (models.SurgeryBooking, "status"),
    (models.SurgeryBooking, "payment_status"),
    (models.Journey, "finalize_status"),
)


def register_status_listeners() -> None:
    """Attach change loggers to booking and journey status columns."""
    for model, attribute in _WATCHED:
        if (model, attribute) in _registered:
            continue
        column = getattr(model, attribute)
        listener = _listener_factory(model.__name__, attribute)
        _registered[(model, attribute)] = listener
        event.listen(column, "set", listener, retval=False, propagate=True)

