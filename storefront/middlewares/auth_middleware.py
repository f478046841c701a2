from typing import Iterable, Optional
from uuid import UUID
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from storefront.auth.dependencies import Authentication
from storefront.common.custom_exceptions import UnauthorizedError
from storefront.common.utils import build_error, json_error
from storefront.common.constants import request_id_ctx
from storefront.user.repository import identify_user_by_pid
from storefront.middlewares.constants import logger


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Resolves the bearer token into request.state.user_identifier / user_roles.
    `paths` skip authentication entirely , `maybe_auth_paths` authenticate when an
    Authorization header is present and otherwise let the request through as a guest.
    """
    def __init__(self, app, *, session_maker, paths: Iterable[str], maybe_auth_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.session_maker = session_maker
        self.paths = tuple(paths)
        self.maybe_auth_paths = tuple(maybe_auth_paths or ())

    def _unauthorized(self, message: str):
        payload = build_error(code="UNAUTHORIZED", details={"message": message}, request_id=request_id_ctx.get())
        return json_error(payload, status_code=status.HTTP_401_UNAUTHORIZED)

    async def dispatch(self, request: Request, call_next):

        path = request.url.path
        if any(path.startswith(p) for p in self.paths):
            return await call_next(request)

        if any(path.startswith(p) for p in self.maybe_auth_paths) and not request.headers.get("Authorization"):
            return await call_next(request)

        try:
            auth_token = await Authentication()(request)
        except UnauthorizedError as e:
            logger.warning("auth.middleware.failed", extra={
                "reason": e.message,
                "path": path,
                "method": request.method
            })
            return self._unauthorized("Missing or Invalid Auth Headers")

        try:
            user_pid = UUID(str(auth_token.get("sub")))
        except ValueError:
            return self._unauthorized("Invalid token subject")

        async with self.session_maker() as session:
            user = await identify_user_by_pid(session,user_pid)

        if not user:
            logger.warning("auth.middleware.user_not_found", extra={
                "user_public_id": str(user_pid),
                "path": path
            })
            return self._unauthorized("User unidentified and not authorized")

        request.state.user_identifier = user["user_id"]
        request.state.user_public_id = str(user_pid)
        request.state.user_roles = [user["role"]]

        return await call_next(request)
