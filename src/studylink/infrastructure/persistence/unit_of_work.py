"""Transaction runner for multi-row group mutations.

Each call runs an operation inside one transaction: committed on success,
rolled back on any failure. Optimistic conflicts roll back and re-run the
operation from scratch.
"""

from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studylink.core.config import get_settings
from studylink.core.logging import LoggingContext, get_logger
from studylink.domain.exceptions import (
    AlreadyGroupedError,
    ConcurrentModificationError,
    InviteCodeCollisionError,
    StaleGroupError,
)

logger = get_logger(__name__)

T = TypeVar("T")


def translate_integrity_error(exc: IntegrityError) -> Exception:
    """Map a unique-constraint violation to the error it stands for.

    Args:
        exc: Error raised by the database driver.

    Returns:
        ``InviteCodeCollisionError`` for a taken invite code,
        ``AlreadyGroupedError`` for a student already in a group, or the
        original error for anything else.
    """
    detail = str(exc.orig).lower()
    if "invite_code" in detail:
        return InviteCodeCollisionError(detail)
    if "group_members" in detail and "student" in detail:
        return AlreadyGroupedError()
    return exc


async def run_atomic(
    session: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    max_attempts: int | None = None,
    name: str = "group_mutation",
) -> T:
    """Run ``operation`` as one unit of work.

    Args:
        session: Session the operation uses.
        operation: Zero-argument coroutine function doing the reads and writes.
        max_attempts: Attempts before giving up on optimistic conflicts.
            Defaults to ``mutation_max_attempts`` from settings.
        name: Operation name for log entries.

    Returns:
        Whatever ``operation`` returns.

    Raises:
        ConcurrentModificationError: If every attempt lost an optimistic race.
        GroupDomainError: Any domain error raised by ``operation``.
    """
    attempts = max_attempts or get_settings().mutation_max_attempts

    with LoggingContext(operation=name):
        return await _run_with_retries(session, operation, attempts)


async def _run_with_retries(
    session: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    attempts: int,
) -> T:
    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
            await session.commit()
            return result
        except (StaleGroupError, InviteCodeCollisionError) as e:
            await session.rollback()
            logger.warning(
                "Unit of work lost a race, retrying",
                attempt=attempt,
                reason=str(e),
            )
        except IntegrityError as e:
            await session.rollback()
            translated = translate_integrity_error(e)
            if not isinstance(translated, InviteCodeCollisionError):
                if translated is e:
                    raise
                raise translated from e
            logger.warning(
                "Invite code collided on insert, retrying",
                attempt=attempt,
            )
        except Exception:
            await session.rollback()
            raise

    logger.error("Unit of work gave up after repeated conflicts", attempts=attempts)
    raise ConcurrentModificationError()
