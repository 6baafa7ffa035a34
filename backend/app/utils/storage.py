import functools
import logging
import time

from sqlalchemy.exc import OperationalError

from app.core.config import settings
from .errors import StorageError

logger = logging.getLogger(__name__)


def with_storage_retry(fn):
    """Retry a session-bound operation once on a transient storage failure.

    The wrapped callable must be a method of an object exposing ``db``. The
    session is rolled back before the retry; business errors pass straight
    through. A second failure surfaces as ``StorageError``.
    """

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except OperationalError as exc:
            self.db.rollback()
            logger.warning("storage_retry op=%s err=%s", fn.__name__, exc.orig)
        time.sleep(settings.STORAGE_RETRY_BACKOFF_SECONDS)
        try:
            return fn(self, *args, **kwargs)
        except OperationalError as exc:
            self.db.rollback()
            logger.error("storage_failed op=%s err=%s", fn.__name__, exc.orig)
            raise StorageError(
                "The booking service is temporarily unavailable. Please try again."
            ) from exc

    return wrapper
