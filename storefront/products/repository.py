from typing import Optional
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from storefront.common.custom_exceptions import ConflictError, InvalidInputError, NotFoundError
from storefront.common.utils import as_utc, now
from storefront.products.constants import IN_STOCK, LOW_STOCK, OUT_OF_STOCK, logger
from storefront.products.utils import stock_status, variant_pricing
from storefront.schema.full_schema import Category, OptionType, Product, ProductImage, ProductVariant, VariantOption


def variant_stock_subquery():
    return (
        select(
            ProductVariant.product_id.label("product_id"),
            func.coalesce(func.sum(ProductVariant.stock_quantity), 0).label("stock"),
        )
        .group_by(ProductVariant.product_id)
        .subquery()
    )


def stock_status_filter(stock_col, status_name):
    if status_name == OUT_OF_STOCK:
        return stock_col <= 0
    if status_name == LOW_STOCK:
        return (stock_col > 0) & (stock_col <= Product.min_stock)
    if status_name == IN_STOCK:
        return stock_col > Product.min_stock
    return None


def serialize_variant(variant, min_stock, at=None):
    pricing = variant_pricing(variant, at=at)
    return {
        "id": variant.id,
        "sku": variant.sku,
        "price": variant.price,
        "stock_quantity": variant.stock_quantity,
        "stock_status": stock_status(variant.stock_quantity, min_stock),
        "is_active": variant.is_active,
        "discount_price": variant.discount_price,
        "discount_percentage": variant.discount_percentage,
        "discount_start": variant.discount_start,
        "discount_end": variant.discount_end,
        "is_on_sale": pricing.is_on_sale,
        "final_price": pricing.final_price,
        "options": [{"name": opt.option_type.name, "value": opt.value} for opt in variant.options],
    }


def serialize_images(product):
    return [
        {"id": img.id, "image_url": img.image_url, "is_primary": img.is_primary, "display_order": img.display_order}
        for img in product.images
    ]


def primary_image_url(product) -> Optional[str]:
    for img in product.images:
        if img.is_primary:
            return img.image_url
    return product.images[0].image_url if product.images else None


async def fetch_prods(session, *, search=None, featured=None, is_active=None, status_name=None,
                      page: int = 1, page_size: int = 10):
    stock_sq = variant_stock_subquery()
    stock_col = func.coalesce(stock_sq.c.stock, 0)

    filters = []
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern), Product.supplier.ilike(pattern)))
    if featured is not None:
        filters.append(Product.featured == featured)
    if is_active is not None:
        filters.append(Product.is_active == is_active)
    if status_name:
        status_clause = stock_status_filter(stock_col, status_name)
        if status_clause is not None:
            filters.append(status_clause)

    base = select(Product.id).outerjoin(stock_sq, stock_sq.c.product_id == Product.id).where(*filters)
    total = (await session.execute(select(func.count()).select_from(base.subquery()))).scalar_one()

    stmt = (
        select(Product, stock_col.label("stock"))
        .outerjoin(stock_sq, stock_sq.c.product_id == Product.id)
        .where(*filters)
        .options(selectinload(Product.images), selectinload(Product.categories))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await session.execute(stmt)).all()

    items = []
    for product, stock in rows:
        stock = int(stock or 0)
        items.append({
            "id": product.id,
            "name": product.name,
            "description": product.description,
            "base_price": product.base_price,
            "sku": product.sku,
            "supplier": product.supplier,
            "min_stock": product.min_stock,
            "stock": stock,
            "stock_status": stock_status(stock, product.min_stock),
            "is_active": product.is_active,
            "featured": product.featured,
            "primary_image": primary_image_url(product),
            "categories": [c.name for c in product.categories],
            "created_at": product.created_at,
            "updated_at": product.updated_at,
        })

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": (total + page_size - 1) // page_size,
    }


async def fetch_product_details(session, product_id: int):
    stmt = (
        select(Product)
        .options(
            selectinload(Product.variants).selectinload(ProductVariant.options).selectinload(VariantOption.option_type),
            selectinload(Product.images),
            selectinload(Product.categories),
        )
        .where(Product.id == product_id)
    )

    res = await session.execute(stmt)
    product = res.scalar_one_or_none()

    if product is None:
        logger.warning("product.not_found", extra={"product_id": product_id})
        raise NotFoundError("Product not found")

    at = now()
    variants = sorted(product.variants, key=lambda v: v.id)
    stock = sum(v.stock_quantity for v in variants)

    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "base_price": product.base_price,
        "sku": product.sku,
        "supplier": product.supplier,
        "min_stock": product.min_stock,
        "stock": stock,
        "stock_status": stock_status(stock, product.min_stock),
        "is_active": product.is_active,
        "featured": product.featured,
        "created_at": product.created_at,
        "updated_at": product.updated_at,
        "categories": [{"id": c.id, "name": c.name} for c in product.categories],
        "images": serialize_images(product),
        "variants": [serialize_variant(v, product.min_stock, at=at) for v in variants],
    }


async def get_or_create_categories(session, category_names):
    names = []
    for name in category_names or []:
        name = name.strip()
        if name and name not in names:
            names.append(name)
    if not names:
        return []

    res = await session.execute(select(Category).where(Category.name.in_(names)))
    found = {c.name: c for c in res.scalars().all()}

    for name in names:
        if name not in found:
            category = Category(name=name)
            session.add(category)
            found[name] = category

    return [found[name] for name in names]


def option_pairs(options):
    pairs = []
    for opt in options or []:
        if isinstance(opt, dict):
            pair = (opt["name"].strip(), opt["value"].strip())
        else:
            pair = (opt.name.strip(), opt.value.strip())
        if all(pair) and pair not in pairs:
            pairs.append(pair)
    return pairs


async def get_or_create_options(session, pairs) -> dict:
    """
    Maps every (option name , value) pair to its VariantOption row. Option types and
    values are shared across products and created the first time they show up.
    """
    if not pairs:
        return {}

    names = sorted({name for name, _ in pairs})
    res = await session.execute(select(OptionType).where(OptionType.name.in_(names)))
    types = {t.name: t for t in res.scalars().all()}
    for name in names:
        if name not in types:
            types[name] = OptionType(name=name)
            session.add(types[name])

    res = await session.execute(
        select(VariantOption)
        .join(OptionType, OptionType.id == VariantOption.option_type_id)
        .options(selectinload(VariantOption.option_type))
        .where(OptionType.name.in_(names))
    )
    found = {(o.option_type.name, o.value): o for o in res.scalars().all()}

    for name, value in pairs:
        if (name, value) not in found:
            option = VariantOption(option_type=types[name], value=value)
            session.add(option)
            found[(name, value)] = option

    return found


def build_images(image_urls):
    urls = [u.strip() for u in image_urls or [] if u and u.strip()]
    return [ProductImage(image_url=url, is_primary=(idx == 0), display_order=idx) for idx, url in enumerate(urls)]


async def ensure_skus_available(session, skus):
    dupes = {s for s in skus if skus.count(s) > 1}
    if dupes:
        raise ConflictError("Duplicate variant SKU in request", {"skus": sorted(dupes)})

    res = await session.execute(select(ProductVariant.sku).where(ProductVariant.sku.in_(skus)))
    taken = res.scalars().all()
    if taken:
        logger.warning("product.variant.duplicate_sku", extra={"skus": taken})
        raise ConflictError(f"Variant SKU '{taken[0]}' already exists", {"skus": sorted(taken)})


async def insert_product(session, payload) -> Product:
    await ensure_skus_available(session, [v.sku for v in payload.variants])

    variant_options = {v.sku: option_pairs(v.options) for v in payload.variants}
    options = await get_or_create_options(session, [p for pairs in variant_options.values() for p in pairs])

    product = Product(
        name=payload.name,
        description=payload.description,
        base_price=payload.base_price,
        sku=payload.sku,
        min_stock=payload.min_stock,
        supplier=payload.supplier,
        is_active=payload.is_active,
        featured=payload.featured,
    )
    product.categories = await get_or_create_categories(session, payload.category_names)
    product.images = build_images(payload.image_urls)
    product.variants = [
        ProductVariant(**v.model_dump(exclude={"options"}), options=[options[p] for p in variant_options[v.sku]])
        for v in payload.variants
    ]
    session.add(product)

    try:
        await session.flush()
    except IntegrityError as exc:
        # sku raced in by another writer between the check and the insert
        raise ConflictError("Variant SKU already exists") from exc

    return product


async def patch_product(session, product_id: int, updates: dict):
    category_names = updates.pop("category_names", None)
    image_urls = updates.pop("image_urls", None)

    if updates:
        res = await session.execute(
            update(Product).where(Product.id == product_id).values(**updates, updated_at=now())
        )
        if res.rowcount == 0:
            raise NotFoundError("Product not found")

    if category_names is None and image_urls is None:
        if not updates:
            await find_product(session, product_id)
        return product_id

    product = await find_product(session, product_id, with_relations=True)

    if category_names is not None:
        product.categories = await get_or_create_categories(session, category_names)
    if image_urls is not None:
        product.images = build_images(image_urls)

    product.updated_at = now()
    await session.flush()
    return product_id


async def find_product(session, product_id: int, with_relations: bool = False) -> Product:
    stmt = select(Product).where(Product.id == product_id)
    if with_relations:
        stmt = stmt.options(selectinload(Product.categories), selectinload(Product.images))
    product = (await session.execute(stmt)).scalar_one_or_none()
    if product is None:
        logger.warning("product.not_found", extra={"product_id": product_id})
        raise NotFoundError("Product not found")
    return product


async def deactivate_product(session, product_id: int):
    res = await session.execute(
        update(Product).where(Product.id == product_id).values(is_active=False, updated_at=now())
    )
    if res.rowcount == 0:
        raise NotFoundError("Product not found")


async def patch_variant(session, variant_id: int, updates: dict):
    stmt = (
        select(ProductVariant)
        .options(
            selectinload(ProductVariant.product),
            selectinload(ProductVariant.options).selectinload(VariantOption.option_type),
        )
        .where(ProductVariant.id == variant_id)
    )
    variant = (await session.execute(stmt)).scalar_one_or_none()
    if variant is None:
        logger.warning("product.variant.not_found", extra={"variant_id": variant_id})
        raise NotFoundError("Product variant not found")

    start = as_utc(updates.get("discount_start", variant.discount_start))
    end = as_utc(updates.get("discount_end", variant.discount_end))
    if start and end and end < start:
        raise InvalidInputError("discount_end must not be before discount_start",
                                {"discount_start": start.isoformat(), "discount_end": end.isoformat()})

    new_options = updates.pop("options", None)
    if new_options is not None:
        pairs = option_pairs(new_options)
        found = await get_or_create_options(session, pairs)
        variant.options = [found[p] for p in pairs]

    for field, value in updates.items():
        setattr(variant, field, value)

    await session.flush()
    return serialize_variant(variant, variant.product.min_stock)


async def purge_product(session, product_id: int):
    # variants , images and category links go with the row through ON DELETE CASCADE ,
    # cart lines of its variants are dropped and past order lines keep their snapshot
    res = await session.execute(delete(Product).where(Product.id == product_id))
    if res.rowcount == 0:
        logger.warning("product.not_found", extra={"product_id": product_id})
        raise NotFoundError("Product not found")


async def set_variant_stock(session, wanted: dict) -> dict:
    """Overwrites stock_quantity for each variant id in `wanted`; unknown ids are reported back."""
    stmt = (
        select(ProductVariant)
        .options(selectinload(ProductVariant.product))
        .where(ProductVariant.id.in_(list(wanted)))
        .order_by(ProductVariant.id)
        .with_for_update(of=ProductVariant)
    )
    variants = (await session.execute(stmt)).scalars().all()

    for variant in variants:
        variant.stock_quantity = wanted[variant.id]
    await session.flush()

    found = {v.id for v in variants}
    return {
        "updated": [
            {
                "id": v.id,
                "sku": v.sku,
                "stock_quantity": v.stock_quantity,
                "stock_status": stock_status(v.stock_quantity, v.product.min_stock),
            }
            for v in variants
        ],
        "not_found": sorted(set(wanted) - found),
    }
