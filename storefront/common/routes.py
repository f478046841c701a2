from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.common.logging_setup import get_logger
from storefront.common.utils import success_response
from storefront.db.dependencies import get_session

home_router = APIRouter()
logger = get_logger("storefront.health")


@home_router.get("/health")
async def health_check(session:AsyncSession=Depends(get_session)):
    try:
        await session.execute(select(1))
    except SQLAlchemyError as exc:
        logger.error("health.db_unreachable", extra={"error_type": type(exc).__name__})
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database connection error")

    return success_response({"status": "healthy"})
