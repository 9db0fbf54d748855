"""Transaction boundary shared by the write paths of every service."""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import ConflictError, TransactionFailure
from ..core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def atomic(
    db: AsyncSession,
    operation: str,
    conflict_message: Optional[str] = None,
    **context,
) -> AsyncIterator[AsyncSession]:
    """
    Run a block of writes and commit them as one unit.

    Any exception rolls the session back so the previously committed state
    stays intact. Storage errors are translated: integrity violations become
    ConflictError, everything else TransactionFailure. Errors raised by the
    block itself (validation, not found) propagate unchanged.
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"{operation}_conflict", error=str(e.orig), **context)
        raise ConflictError(
            conflict_message or f"{operation} conflicts with existing data",
            details=context,
        ) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"{operation}_rolled_back", error=str(e), **context)
        raise TransactionFailure(f"{operation} could not be committed", details=context) from e
    except BaseException:
        await db.rollback()
        raise
