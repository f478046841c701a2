from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import  AsyncSession
from storefront.auth.dependencies import current_user_id
from storefront.common.utils import success_response
from storefront.db.dependencies import get_session
from storefront.user.repository import fetch_user_profile

user_router=APIRouter()


@user_router.get("/me")
async def get_user_profile(user_id: int = Depends(current_user_id), session: AsyncSession = Depends(get_session)):
    profile = await fetch_user_profile(session, user_id)
    return success_response(profile)
