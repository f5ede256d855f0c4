"""
Unit of work for lifecycle operations.

An operation is a coroutine that only stages changes on the session. It is
committed here as one transaction, so a status change, its history entry and
any activity log line land together or not at all.

Order and batch rows carry a version counter; a concurrent writer makes our
flush fail with StaleDataError, in which case the whole operation is re-read
and re-validated from scratch. Known insert races (first order number of a
year, first order of a customer, the day's open batch) are turned into
StaleDataError where they happen. Any other constraint violation is bad
input and is not retried.
"""

import logging
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from shippxpress.config import settings
from shippxpress.services.errors import (
    ConcurrentModification, LifecycleError, StorageUnavailable, ValidationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def atomically(
    db: AsyncSession,
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int | None = None,
    **kwargs: Any,
) -> T:
    attempts = max_attempts or settings.TRANSITION_MAX_RETRIES
    name = getattr(operation, "__name__", "operation")

    for attempt in range(1, attempts + 1):
        try:
            result = await operation(db, *args, **kwargs)
            await db.commit()
            return result
        except StaleDataError as e:
            await db.rollback()
            logger.warning("Write conflict in %s (attempt %d/%d): %s", name, attempt, attempts, e)
        except LifecycleError:
            await db.rollback()
            raise
        except IntegrityError as e:
            await db.rollback()
            logger.warning("Constraint violated in %s: %s", name, e.orig)
            raise ValidationError(f"{name} violates a data constraint", reason=str(e.orig)) from e
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Storage failure in %s: %s", name, e)
            raise StorageUnavailable(f"Storage unavailable during {name}") from e

    raise ConcurrentModification(f"{name} kept conflicting with concurrent writers; retry later")
