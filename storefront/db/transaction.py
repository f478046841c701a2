from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.common.logging_setup import get_logger

logger = get_logger("storefront.db")


@asynccontextmanager
async def unit_of_work(session: AsyncSession, name: str) -> AsyncIterator[AsyncSession]:
    """
    All-or-nothing scope for a multi statement write. Commits when the block exits
    cleanly , rolls back every statement issued inside it on any exception and re-raises.
    """
    try:
        async with session.begin():
            yield session
    except Exception as exc:
        logger.warning(f"{name}.rolled_back", extra={"error_type": type(exc).__name__})
        raise
