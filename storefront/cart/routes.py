from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.auth.dependencies import cart_session_token, current_user_id
from storefront.cart.dependencies import CartActor, cart_actor
from storefront.cart.models import AddToCartIn, UpdateCartItemIn
from storefront.cart.services import add_to_cart, change_quantity, delete_item, empty_cart, load_cart, merge_carts
from storefront.common.utils import success_response
from storefront.config.admin_config import admin_config
from storefront.config.settings import config_settings
from storefront.db.dependencies import get_session

carts_router=APIRouter()

secure_flag = False if admin_config.ENV == "dev" else True
CART_SESSION_MAX_AGE = int(config_settings.CART_SESSION_MAX_AGE_DAYS) * 24 * 3600


def cart_response(data, actor: CartActor, status_code: int = 200):
    response = success_response(data, status_code=status_code)
    if actor.issued_token:
        response.set_cookie(
            key=config_settings.CART_SESSION_COOKIE,
            value=actor.issued_token,
            httponly=True,
            secure=secure_flag,
            samesite="Lax",
            path="/",
            max_age=CART_SESSION_MAX_AGE,
        )
        response.headers[config_settings.CART_SESSION_HEADER] = actor.issued_token
    return response


@carts_router.get("")
async def get_cart(actor: CartActor = Depends(cart_actor), session: AsyncSession = Depends(get_session)):
    cart = await load_cart(session, actor.owner)
    return cart_response(cart, actor)


@carts_router.delete("")
async def clear_cart(actor: CartActor = Depends(cart_actor), session: AsyncSession = Depends(get_session)):
    cart = await empty_cart(session, actor.owner)
    return cart_response(cart, actor)


@carts_router.post("/items")
async def add_cart_item(payload: AddToCartIn, actor: CartActor = Depends(cart_actor),
                        session: AsyncSession = Depends(get_session)):
    resp = await add_to_cart(session, actor.owner, payload)
    return cart_response(resp, actor, status_code=status.HTTP_201_CREATED if resp["created"] else status.HTTP_200_OK)


@carts_router.put("/items/{item_id}")
async def update_cart_item(item_id: int, payload: UpdateCartItemIn, actor: CartActor = Depends(cart_actor),
                           session: AsyncSession = Depends(get_session)):
    cart = await change_quantity(session, actor.owner, item_id, payload.quantity)
    return cart_response(cart, actor)


@carts_router.delete("/items/{item_id}")
async def remove_cart_item(item_id: int, actor: CartActor = Depends(cart_actor),
                           session: AsyncSession = Depends(get_session)):
    cart = await delete_item(session, actor.owner, item_id)
    return cart_response(cart, actor)


@carts_router.post("/merge")
async def merge_guest_cart(user_id: int = Depends(current_user_id),
                           session_token: Optional[str] = Depends(cart_session_token),
                           session: AsyncSession = Depends(get_session)):
    if not session_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Guest cart session token is required")

    resp = await merge_carts(session, user_id, session_token)

    response = success_response(resp)
    if resp["merged"]:
        response.delete_cookie(key=config_settings.CART_SESSION_COOKIE, path="/")
    return response
