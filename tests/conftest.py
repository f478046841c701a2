import os
import tempfile

# point the app at a throwaway sqlite file before storefront reads its settings
_DB_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'storefront-test.db')}"
os.environ["ENV"] = "dev"
os.environ["ENABLE_ADMIN"] = "true"

import pytest  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from storefront.db.connection import async_engine  # noqa: E402
from storefront.schema.full_schema import UserRoleName  # noqa: E402
from tests.factories import create_user  # noqa: E402


@pytest.fixture
async def reset_db():
    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield
    # pooled connections belong to this test's event loop
    await async_engine.dispose()


@pytest.fixture
async def customer(reset_db):
    return await create_user("ana@example.com")


@pytest.fixture
async def customer2(reset_db):
    return await create_user("ben@example.com")


@pytest.fixture
async def admin(reset_db):
    return await create_user("root@example.com", role=UserRoleName.ADMIN.value)
