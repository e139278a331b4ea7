from typing import List, Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    postgres_user: str = "storefront"
    postgres_password: str = ""
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # overrides the postgres fields when set (sqlite for local runs and tests)
    DATABASE_URL: Optional[str] = None

    # identity provider session tokens
    secret_key: str = "change-me"
    algorithm: str = "HS256"

    shop_api_base_url: str = "http://localhost:5000"
    shop_api_timeout: float = 10.0

    currency_symbol: str = "£"
    currency_code: str = "GBP"

    checkout_snapshot_ttl_minutes: int = 30
    shipping_settings_ttl: int = 10 * 60  # seconds

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @property
    def database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
