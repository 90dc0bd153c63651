from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # Database - DATABASE_URL wins over the individual POSTGRES_* fields
    DATABASE_URL: Optional[str] = None
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "palma"
    POSTGRES_USER: str = "palma"
    POSTGRES_PASSWORD: str = "palma"
    SEED_ON_STARTUP: bool = True

    # Remote product catalog (PostgREST endpoint); empty URL means local cache only
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""

    # Logistics carrier
    FLASHLINE_API_URL: str = "https://apisv2.logestechs.com/api"
    FLASHLINE_EMAIL: str = "test"
    FLASHLINE_PASSWORD: str = "test"
    FLASHLINE_COMPANY_ID: int = 1
    USE_MOCK_SHIPMENTS: bool = True
    HTTP_TIMEOUT_SECONDS: float = 5.0

    # Auth
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # Marketplace
    APP_NAME: str = "Palma Marketplace"
    CURRENCY: str = "ILS"
    COMMISSION_RATE: float = 0.02
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def remote_catalog_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)

@lru_cache
def get_settings() -> Settings:
    return Settings()
