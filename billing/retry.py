import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from django.db import DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_on_db_error(
    fn: Callable[[], T],
    attempts: int = 3,
    delay: float = 1.0,
    errors: Tuple[Type[BaseException], ...] = (DatabaseError,),
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """
    Call `fn` up to `attempts` times, sleeping `delay` seconds between tries.
    The last error is re-raised.

    SQLite reports a write lock held past its timeout as OperationalError
    (a DatabaseError), so a retried read-decide-write sees the winner's row.
    """
    sleep = sleep or time.sleep
    attempts = max(1, attempts)
    for i in range(attempts):
        try:
            return fn()
        except errors as exc:
            if i == attempts - 1:
                logger.error("[retry] giving up after %s attempt(s): %s", attempts, exc)
                raise
            logger.warning("[retry] attempt %s/%s failed: %s", i + 1, attempts, exc)
            sleep(delay)
