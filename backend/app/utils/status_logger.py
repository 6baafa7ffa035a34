import logging
from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE

from .. import models

logger = logging.getLogger(__name__)

_registered = False


def _listener_factory(model_name: str):
    """Return a SQLAlchemy attribute listener that logs status changes."""

    def _status_change(target, value, oldvalue, initiator):  # noqa: ANN001
        if oldvalue is NO_VALUE or oldvalue is None or oldvalue == value:
            return value
        entity_id = getattr(target, "id", None) or getattr(target, "user_id", "unknown")
        logger.info(
            "%s id=%s status changed from %s to %s",
            model_name,
            entity_id,
            getattr(oldvalue, "value", oldvalue),
            getattr(value, "value", value),
        )
        return value

    return _status_change


def register_status_listeners() -> None:
    """Attach listeners for models whose ``status`` is changed through the ORM.

    Booking transitions go through compare-and-swap UPDATE statements and are
    logged by the lifecycle manager instead.
    """
    global _registered
    if _registered:
        return
    for model in (models.ChefProfile, models.Withdrawal):
        event.listen(
            model.status,  # type: ignore[arg-type]
            "set",
            _listener_factory(model.__name__),
            retval=False,
            propagate=True,
        )
    _registered = True
