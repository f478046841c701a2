from sqlalchemy.ext.asyncio import create_async_engine,async_sessionmaker,AsyncSession
from storefront.config.settings import config_settings
from storefront.db.utils import _normalize_db_url, engine_kwargs, install_sqlite_locking, is_sqlite_url

DATABASE_URL=_normalize_db_url(config_settings.DATABASE_URL)

async_engine=create_async_engine(DATABASE_URL,echo=config_settings.DB_ECHO,**engine_kwargs(DATABASE_URL))

if is_sqlite_url(DATABASE_URL):
    install_sqlite_locking(async_engine)

async_session=async_sessionmaker(bind=async_engine,class_=AsyncSession,expire_on_commit=False)
