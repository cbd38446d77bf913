import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import exc as sa_exc

from string_analyzer.errors import TransientStoreError

logger = logging.getLogger("string_analyzer.db")

T = TypeVar("T")


def is_transient_db_error(exc: BaseException) -> bool:
    """True for failures worth retrying: lost connections, timeouts, pool exhaustion."""
    if isinstance(exc, sa_exc.IntegrityError):
        return False
    if isinstance(exc, (sa_exc.OperationalError, sa_exc.DisconnectionError, sa_exc.TimeoutError)):
        return True
    if isinstance(exc, sa_exc.DBAPIError) and exc.connection_invalidated:
        return True
    return False


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    is_retryable: Callable[[BaseException], bool] = is_transient_db_error,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> T:
    """Await ``operation()``, retrying retryable failures with exponential backoff.

    The delay before retry ``n`` (0-based) is ``base_delay * 2**n``. After
    ``max_retries`` retries the last error is wrapped in TransientStoreError.
    Anything ``is_retryable`` rejects propagates untouched on first sight.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if not is_retryable(exc):
                raise
            if attempt >= max_retries:
                logger.error("Database operation failed after %d attempts: %s", attempt + 1, exc)
                raise TransientStoreError("Database temporarily unavailable") from exc

            wait_seconds = base_delay * (2 ** attempt)
            attempt += 1
            logger.warning(
                "Database operation failed (attempt %d/%d), retrying in %.2f seconds: %s",
                attempt,
                max_retries + 1,
                wait_seconds,
                exc,
            )
            await asyncio.sleep(wait_seconds)
