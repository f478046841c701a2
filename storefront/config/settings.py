from pydantic_settings import BaseSettings

class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"
    DB_ECHO: bool = False
    JWT_SECRET: str = "dev-secret-change-me"
    JWT_ALGO: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    CART_SESSION_COOKIE: str = "CartSessionId"
    CART_SESSION_HEADER: str = "X-Cart-Session"
    CART_SESSION_MAX_AGE_DAYS: int = 30

    class Config:
        env_file = ".env"
        extra="ignore"

config_settings = Settings()
