from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "dev"                # "dev" / "staging" / "prod"
    ENABLE_ADMIN: bool = True       # False -> admin routers are not mounted
    SERVICE_NAME: str = "storefront"

    class Config:
        env_file = ".env"
        extra="ignore"

admin_config = Settings()
