import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit, session_rollback

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionManager:
    """
    Utility class for grouping writes into one database transaction and
    retrying whole units of work on transient conflicts.
    """

    # Retry configuration
    MAX_RETRIES = 3
    RETRY_DELAY_BASE = 0.05  # Base delay in seconds

    @staticmethod
    @asynccontextmanager
    async def atomic_transaction(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
        """
        Commit everything written inside the block at once, or nothing.

        Usage:
            async with TransactionManager.atomic_transaction(session):
                session.add(...)
                await session_flush(session)
        """
        transaction_start = datetime.now()
        try:
            yield session
            await session_commit(session)
            duration = (datetime.now() - transaction_start).total_seconds()
            logger.debug(f"Transaction committed successfully in {duration:.2f}s")
        except Exception as e:
            try:
                await session_rollback(session)
                logger.info(f"Transaction rolled back due to error: {str(e)}")
            except Exception as rollback_error:
                logger.critical(f"Failed to rollback transaction: {str(rollback_error)}")
            raise

    @staticmethod
    async def run_with_retry(
        operation: Callable[[int], Awaitable[T]],
        retry_on: tuple[type[BaseException], ...],
        max_attempts: Optional[int] = None,
        delay_base: Optional[float] = None
    ) -> T:
        """
        Run `operation(attempt)` until it succeeds, retrying on `retry_on`
        errors with exponential backoff.

        The attempt number (starting at 1) is passed in so the operation can
        regenerate whatever caused the conflict (e.g. a fresh order number).
        Errors not listed in `retry_on` propagate immediately.
        """
        max_attempts = max(1, max_attempts or TransactionManager.MAX_RETRIES)
        delay_base = TransactionManager.RETRY_DELAY_BASE if delay_base is None else delay_base

        for attempt in range(1, max_attempts + 1):
            try:
                return await operation(attempt)
            except retry_on as e:
                if attempt == max_attempts:
                    logger.error(f"{getattr(operation, '__name__', 'operation')} failed after {max_attempts} attempts: {str(e)}")
                    raise
                delay = delay_base * (2 ** (attempt - 1))
                logger.warning(f"Attempt {attempt} failed, retrying in {delay:.2f}s: {str(e)}")
                if delay > 0:
                    await asyncio.sleep(delay)
