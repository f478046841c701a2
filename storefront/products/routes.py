from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.params import Query
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.auth.dependencies import require_roles
from storefront.common.utils import success_response
from storefront.db.dependencies import get_session
from storefront.products.constants import MAX_PAGE_SIZE, STOCK_STATUSES, logger
from storefront.products.models import ProductCreateIn, ProductUpdateIn, VariantStockIn, VariantUpdateIn
from storefront.products.repository import fetch_product_details, fetch_prods
from storefront.products.services import (bulk_update_stock, create_product_with_variants, hard_delete_product,
                                          soft_delete_product, update_product, update_variant)
from storefront.schema.full_schema import UserRoleName

prods_public_router=APIRouter()
prods_admin_router=APIRouter()

ADMIN = UserRoleName.ADMIN.value


@prods_admin_router.post("", dependencies=[require_roles(ADMIN)])
async def create_product(request:Request,payload: ProductCreateIn, session: AsyncSession = Depends(get_session)):
    user_pid = request.state.user_public_id

    logger.info("product.create.attempt", extra={"user": user_pid, "variants": len(payload.variants)})

    product = await create_product_with_variants(session, payload, user_pid)
    return success_response({"message": "product created", "product": product}, status_code=status.HTTP_201_CREATED)


# declared before /{product_id} so "bulk-stock" and "variants" are never parsed as a product id
@prods_admin_router.patch("/bulk-stock", dependencies=[require_roles(ADMIN)])
async def patch_bulk_stock(request:Request,payload: List[VariantStockIn] = Body(...),
                           session: AsyncSession = Depends(get_session)):
    result = await bulk_update_stock(session, payload, request.state.user_public_id)
    return success_response(result)


@prods_admin_router.patch("/variants/{variant_id}", dependencies=[require_roles(ADMIN)])
async def patch_product_variant(request:Request,variant_id: int, payload: VariantUpdateIn,
                                session: AsyncSession = Depends(get_session)):
    variant = await update_variant(session, variant_id, payload, request.state.user_public_id)
    return success_response(variant)


@prods_admin_router.patch("/{product_id}", dependencies=[require_roles(ADMIN)])
async def patch_product(request:Request,product_id: int, payload: ProductUpdateIn,
                        session: AsyncSession = Depends(get_session)):
    product = await update_product(session, product_id, payload, request.state.user_public_id)
    return success_response(product)


@prods_admin_router.delete("/{product_id}", dependencies=[require_roles(ADMIN)])
async def deactivate_product(request:Request,product_id: int, session: AsyncSession = Depends(get_session)):
    await soft_delete_product(session, product_id, request.state.user_public_id)
    return success_response({"message": f"product {product_id} deactivated"})


@prods_admin_router.delete("/{product_id}/hard", dependencies=[require_roles(ADMIN)])
async def purge_product(request:Request,product_id: int, session: AsyncSession = Depends(get_session)):
    await hard_delete_product(session, product_id, request.state.user_public_id)
    return success_response({"message": f"product {product_id} permanently deleted"})


@prods_public_router.get("")
async def get_products(
    search: Optional[str] = Query(None, max_length=200),
    featured: Optional[bool] = Query(None),
    is_active: Optional[bool] = Query(None),
    stock_status: Optional[str] = Query(None, description=f"one of {', '.join(STOCK_STATUSES)}"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    session: AsyncSession = Depends(get_session)):

    # unknown stock status values are ignored rather than rejected
    status_name = stock_status.lower() if stock_status and stock_status.lower() in STOCK_STATUSES else None

    results = await fetch_prods(session, search=search, featured=featured, is_active=is_active,
                                status_name=status_name, page=page, page_size=page_size)
    return success_response(results, status_code=status.HTTP_200_OK)


@prods_public_router.get("/{product_id}")
async def get_product_details(product_id: int, session: AsyncSession = Depends(get_session)):
    product_details = await fetch_product_details(session, product_id)
    return success_response(product_details, status_code=status.HTTP_200_OK)
