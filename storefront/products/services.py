from storefront.common.custom_exceptions import InvalidInputError
from storefront.db.transaction import unit_of_work
from storefront.products.constants import logger
from storefront.products.repository import (deactivate_product, fetch_product_details, insert_product,
                                            patch_product, patch_variant, purge_product, set_variant_stock)

# columns that may legitimately be cleared with an explicit null
PRODUCT_NULLABLE = {"description", "sku", "supplier", "category_names", "image_urls"}
VARIANT_NULLABLE = {"discount_price", "discount_percentage", "discount_start", "discount_end"}


def drop_null_updates(updates: dict, nullable: set) -> dict:
    return {k: v for k, v in updates.items() if v is not None or k in nullable}


async def create_product_with_variants(session, payload, user_pid):
    async with unit_of_work(session, "product.create"):
        product = await insert_product(session, payload)
        product_id = product.id

    logger.info("product.create.success", extra={"product_id": product_id, "user": user_pid})
    return await fetch_product_details(session, product_id)


async def update_product(session, product_id: int, payload, user_pid):
    updates = drop_null_updates(payload.model_dump(exclude_unset=True), PRODUCT_NULLABLE)

    async with unit_of_work(session, "product.update"):
        await patch_product(session, product_id, updates)

    logger.info("product.update.success", extra={"product_id": product_id, "user": user_pid, "fields": sorted(updates)})
    return await fetch_product_details(session, product_id)


async def update_variant(session, variant_id: int, payload, user_pid):
    updates = drop_null_updates(payload.model_dump(exclude_unset=True), VARIANT_NULLABLE)

    async with unit_of_work(session, "product.variant.update"):
        variant = await patch_variant(session, variant_id, updates)

    logger.info("product.variant.update.success", extra={"variant_id": variant_id, "user": user_pid})
    return variant


async def soft_delete_product(session, product_id: int, user_pid):
    async with unit_of_work(session, "product.deactivate"):
        await deactivate_product(session, product_id)

    logger.info("product.deactivate.success", extra={"product_id": product_id, "user": user_pid})


async def hard_delete_product(session, product_id: int, user_pid):
    async with unit_of_work(session, "product.purge"):
        await purge_product(session, product_id)

    logger.info("product.purge.success", extra={"product_id": product_id, "user": user_pid})


async def bulk_update_stock(session, updates, user_pid):
    if not updates:
        raise InvalidInputError("No stock updates provided")

    # a variant listed twice takes its last quantity
    wanted = {u.product_variant_id: u.stock_quantity for u in updates}

    async with unit_of_work(session, "product.stock.bulk_update"):
        result = await set_variant_stock(session, wanted)

    logger.info(
        "product.stock.bulk_update.success",
        extra={"updated": len(result["updated"]), "not_found": result["not_found"], "user": user_pid},
    )
    return result
