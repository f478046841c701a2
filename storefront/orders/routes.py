from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.params import Query
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.auth.dependencies import cart_session_token, current_user_id, require_roles
from storefront.common.utils import success_response
from storefront.db.dependencies import get_session
from storefront.orders.constants import logger
from storefront.orders.models import CreateOrderIn, UpdateOrderStatusIn
from storefront.orders.repository import fetch_order, fetch_orders, serialize_order
from storefront.orders.services import place_order, update_order_status
from storefront.schema.full_schema import OrderStatus, UserRoleName

orders_router=APIRouter()
orders_admin_router=APIRouter()


@orders_router.post("")
async def create_order(payload: CreateOrderIn,
                       user_id: int = Depends(current_user_id),
                       session_token: Optional[str] = Depends(cart_session_token),
                       session: AsyncSession = Depends(get_session)):

    logger.info("order.place.attempt", extra={"user_id": user_id, "has_guest_token": bool(session_token)})

    order = await place_order(session, user_id, session_token, payload)
    return success_response(order, status_code=status.HTTP_201_CREATED)


@orders_router.get("")
async def list_my_orders(user_id: int = Depends(current_user_id), session: AsyncSession = Depends(get_session)):
    orders = await fetch_orders(session, user_id=user_id)
    return success_response({"items": orders, "total": len(orders)})


@orders_router.get("/{order_id}")
async def get_my_order(order_id: int, user_id: int = Depends(current_user_id),
                       session: AsyncSession = Depends(get_session)):
    order = await fetch_order(session, order_id, user_id=user_id)
    return success_response(serialize_order(order))


@orders_admin_router.get("", dependencies=[require_roles(UserRoleName.ADMIN.value)])
async def list_all_orders(order_status: Optional[OrderStatus] = Query(None, alias="status"),
                          session: AsyncSession = Depends(get_session)):
    orders = await fetch_orders(session, status_name=order_status.value if order_status else None)
    return success_response({"items": orders, "total": len(orders)})


@orders_admin_router.get("/{order_id}", dependencies=[require_roles(UserRoleName.ADMIN.value)])
async def get_any_order(order_id: int, session: AsyncSession = Depends(get_session)):
    order = await fetch_order(session, order_id)
    return success_response(serialize_order(order))


@orders_admin_router.put("/{order_id}/status", dependencies=[require_roles(UserRoleName.ADMIN.value)])
async def set_order_status(request: Request, order_id: int, payload: UpdateOrderStatusIn,
                           session: AsyncSession = Depends(get_session)):
    order = await update_order_status(session, order_id, payload.status, request.state.user_public_id)
    return success_response(order)
