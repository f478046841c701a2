from typing import NamedTuple, Optional
from fastapi import Depends, Request
from storefront.auth.dependencies import cart_session_token, optional_user_id
from storefront.auth.utils import make_cart_session_token
from storefront.cart.models import CartOwner, GuestOwner, RegisteredOwner


class CartActor(NamedTuple):
    owner: CartOwner
    issued_token: Optional[str]   # set when a guest arrived without a token


def cart_actor(request: Request, session_token: Optional[str] = Depends(cart_session_token)) -> CartActor:
    user_id = optional_user_id(request)
    if user_id is not None:
        return CartActor(RegisteredOwner(user_id), None)

    if session_token:
        return CartActor(GuestOwner(session_token), None)

    token = make_cart_session_token()
    return CartActor(GuestOwner(token), token)
