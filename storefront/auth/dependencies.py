from typing import Optional
from fastapi import Cookie, Depends, Header, Request
from fastapi.security import HTTPBearer
from storefront.auth.constants import logger
from storefront.auth.utils import decode_token
from storefront.common.custom_exceptions import ForbiddenError, UnauthorizedError
from storefront.config.settings import config_settings


class Authentication(HTTPBearer):
    def __init__(self,auto_error=False):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request:Request) -> dict:
        auth_creds=await super().__call__(request)
        if auth_creds is None:
            raise UnauthorizedError("Missing or invalid Authorization header")

        decoded_token=decode_token(auth_creds.credentials)
        if not decoded_token or not decoded_token.get("sub"):
            logger.info("auth.token.rejected", extra={"path": request.url.path})
            raise UnauthorizedError("Invalid or expired token provided.")

        return decoded_token


def cart_session_token(session_header: Optional[str] = Header(None, alias=config_settings.CART_SESSION_HEADER),
                       session_cookie: Optional[str] = Cookie(None, alias=config_settings.CART_SESSION_COOKIE)) -> Optional[str]:
    return session_header or session_cookie


def current_user_id(request: Request) -> int:
    user_id = getattr(request.state, "user_identifier", None)
    if user_id is None:
        raise UnauthorizedError()
    return user_id


def optional_user_id(request: Request) -> Optional[int]:
    return getattr(request.state, "user_identifier", None)


def require_roles(*roles: str):
    async def _checker(request: Request, user_id: int = Depends(current_user_id)):
        user_roles = set(getattr(request.state, "user_roles", None) or [])
        if not user_roles.intersection(roles):
            raise ForbiddenError("User doesn't have the required role")
        return user_id

    return Depends(_checker)
