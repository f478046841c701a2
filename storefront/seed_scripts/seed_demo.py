import asyncio
import os
from decimal import Decimal
from dotenv import load_dotenv
from sqlmodel import SQLModel, select

load_dotenv()

from storefront.auth.utils import create_access_token  # noqa: E402
from storefront.db.connection import async_engine, async_session  # noqa: E402
from storefront.products.models import ProductCreateIn  # noqa: E402
from storefront.products.repository import insert_product  # noqa: E402
from storefront.schema.full_schema import ProductVariant, UserRoleName, Users  # noqa: E402

DEMO_PRODUCTS = [
    {
        "name": "Trail Running Shoe",
        "base_price": Decimal("89.00"),
        "supplier": "Northpeak",
        "featured": True,
        "category_names": ["footwear", "outdoor"],
        "image_urls": ["https://cdn.example.com/shoe-front.jpg", "https://cdn.example.com/shoe-side.jpg"],
        "variants": [
            {"sku": "TRS-42", "price": Decimal("89.00"), "stock_quantity": 25},
            {"sku": "TRS-43", "price": Decimal("89.00"), "stock_quantity": 4, "discount_price": Decimal("74.50")},
        ],
    },
    {
        "name": "Merino Wool Socks",
        "base_price": Decimal("14.00"),
        "supplier": "Northpeak",
        "category_names": ["outdoor"],
        "variants": [{"sku": "MWS-M", "price": Decimal("14.00"), "stock_quantity": 120}],
    },
    {
        "name": "Insulated Bottle",
        "base_price": Decimal("32.00"),
        "category_names": ["accessories"],
        "variants": [{"sku": "BTL-750", "price": Decimal("32.00"), "stock_quantity": 0}],
    },
]


async def get_or_create_user(session, email, name, role):
    res = await session.execute(select(Users).where(Users.email == email))
    user = res.scalar_one_or_none()
    if user is None:
        user = Users(email=email, name=name, role=role)
        session.add(user)
        await session.flush()
        print(f"Created {role} user id={user.id} public_id={user.public_id}")
    return user


async def seed():
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    admin_email = os.environ.get("ADMIN_EMAIL", "admin@example.com")
    customer_email = os.environ.get("CUSTOMER_EMAIL", "shopper@example.com")

    async with async_session() as session:
        async with session.begin():
            admin = await get_or_create_user(session, admin_email, "Admin", UserRoleName.ADMIN.value)
            customer = await get_or_create_user(session, customer_email, "Shopper", UserRoleName.CUSTOMER.value)

            for raw in DEMO_PRODUCTS:
                payload = ProductCreateIn(**raw)
                exists = await session.execute(
                    select(ProductVariant.id).where(ProductVariant.sku == payload.variants[0].sku))
                if exists.first():
                    print(f"Skipping {payload.name}, already seeded")
                    continue
                product = await insert_product(session, payload)
                print(f"Created product id={product.id} name={product.name}")

    print(f"admin token:    {create_access_token(admin.public_id, [admin.role])}")
    print(f"customer token: {create_access_token(customer.public_id, [customer.role])}")
    await async_engine.dispose()
    print("Done.")


if __name__ == "__main__":
    asyncio.run(seed())
