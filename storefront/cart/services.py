from storefront.cart.constants import logger
from storefront.cart.models import CartOwner, RegisteredOwner
from storefront.cart.repository import (add_item, clear_cart, get_or_create_cart, merge_guest_cart, remove_item,
                                        resolve_variant, serialize_cart, update_item_quantity)
from storefront.db.transaction import unit_of_work


async def load_cart(session, owner: CartOwner) -> dict:
    async with unit_of_work(session, "cart.load"):
        cart = await get_or_create_cart(session, owner)
        return serialize_cart(cart)


async def add_to_cart(session, owner: CartOwner, payload) -> dict:
    async with unit_of_work(session, "cart.add_item"):
        variant = await resolve_variant(session, payload.product_variant_id, payload.product_id)
        cart, item, created = await add_item(session, owner, variant, payload.quantity)

        logger.info("cart.add_item.success", extra={"cart_id": cart.id, "variant_id": variant.id, "line_created": created})
        return {"cart": serialize_cart(cart), "item_id": item.id, "created": created}


async def change_quantity(session, owner: CartOwner, item_id: int, quantity: int) -> dict:
    async with unit_of_work(session, "cart.update_item"):
        cart = await update_item_quantity(session, owner, item_id, quantity)
        return serialize_cart(cart)


async def delete_item(session, owner: CartOwner, item_id: int) -> dict:
    async with unit_of_work(session, "cart.remove_item"):
        cart = await remove_item(session, owner, item_id)
        return serialize_cart(cart)


async def empty_cart(session, owner: CartOwner) -> dict:
    async with unit_of_work(session, "cart.clear"):
        cart = await clear_cart(session, owner)
        return serialize_cart(cart)


async def merge_carts(session, user_id: int, session_token: str) -> dict:
    """
    Folds the guest cart behind `session_token` into the user's cart: quantities of
    matching variants are summed , other lines move over and the guest cart row is
    deleted. A missing or empty guest cart leaves everything untouched.
    """
    async with unit_of_work(session, "cart.merge"):
        cart = await merge_guest_cart(session, user_id, session_token)
        if cart is None:
            cart = await get_or_create_cart(session, RegisteredOwner(user_id))
            return {"merged": False, "cart": serialize_cart(cart)}
        return {"merged": True, "cart": serialize_cart(cart)}
