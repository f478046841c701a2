from typing import Any, Dict, Optional
from fastapi import FastAPI, HTTPException, Request,status
from fastapi.exceptions import RequestValidationError
from storefront.common.logging_setup import get_logger
from storefront.common.utils import build_error, json_error
from storefront.common.constants import request_id_ctx

logger = get_logger("storefront.errors")


class AppError(Exception):
    """Base for errors the api layer turns into a client visible envelope."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EmptyCartError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "EMPTY_CART"

    def __init__(self, message: str = "Cart is empty or not found"):
        super().__init__(message)


class InsufficientStockError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_name: str, sku: Optional[str], available: int, requested: int):
        super().__init__(
            f"Insufficient stock for {product_name} ({sku}). Available: {available}",
            {"product": product_name, "sku": sku, "available": available, "requested": requested},
        )
        self.product_name = product_name
        self.available = available


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class InvalidInputError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "UNPROCESSABLE_ENTITY"


class InvalidStatusTransitionError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Order status cannot change from {current} to {requested}",
            {"current": current, "requested": requested},
        )


async def app_error_handler(request: Request, exc: AppError):
    rid = request_id_ctx.get(None)

    logger.warning(
        "request.app_error",
        extra={
            "code": exc.code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    details = {"message": exc.message, **exc.details}
    payload = build_error(code=exc.code, details=details, request_id=rid)
    return json_error(payload, status_code=exc.status_code)


async def fallback_handler(request: Request, exc: Exception):

    rid = request_id_ctx.get(None)

    logger.error(
        "unexpected.exception",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )

    payload = build_error(code="SERVER_ERROR", details={"message": "Internal Server Error"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = request_id_ctx.get(None)
    logger.warning(
        "request.validation_failed",
        extra={
            "errors": exc.errors(),
            "path": request.url.path,
        },
    )

    details = {"message": "invalid request", "errors": exc.errors()}
    payload = build_error(code="UNPROCESSABLE_ENTITY", details=details, request_id=rid)
    return json_error(payload, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def http_exception_handler(request: Request, exc: HTTPException):

    rid = request_id_ctx.get(None)

    payload = build_error(code=f"HTTP_{exc.status_code}", details={"message": exc.detail}, request_id=rid)
    return json_error(payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def register_all_exceptions(app: FastAPI):

    app.add_exception_handler(
        Exception, # catch all unidentified/unhandled exceptions
        fallback_handler
    )

    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler
    )

    app.add_exception_handler(
        HTTPException,
        http_exception_handler
    )

    app.add_exception_handler(
        AppError,
        app_error_handler
    )
