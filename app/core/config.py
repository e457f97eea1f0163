from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings class to retrieve environment variables.

    The instance is frozen: it is built once at startup, stored on
    ``app.state.settings`` and handed to whatever needs it.
    """

    APP_NAME: str = "Storefront API"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api/v1"

    DATABASE_URL: str = "sqlite+aiosqlite:///./storefront.db"
    AUTO_CREATE_TABLES: bool = True

    JWT_ACCESS_SECRET: str
    JWT_REFRESH_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRY: int = 15 * 60          # seconds
    REFRESH_TOKEN_EXPIRY: int = 7 * 24 * 3600   # seconds
    PASSWORD_RESET_EXPIRY: int = 3600           # seconds
    EMAIL_VERIFICATION_EXPIRY: int = 24 * 3600  # seconds

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]
    CORS_ORIGIN_REGEX: Optional[str] = r"https://.*\.vercel\.app"

    UPLOAD_DIR: str = "public/uploads"
    MAX_UPLOAD_SIZE: int = 5 * 1024 * 1024

    MAX_CATEGORY_DEPTH: int = 32
    TAX_RATE: float = 0.10
    DEFAULT_CURRENCY: str = "INR"
    LOW_STOCK_THRESHOLD: int = 10

    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = None
    RAZORPAY_BASE_URL: str = "https://api.razorpay.com/v1"

    FRONTEND_URL: str = "http://localhost:3000"

    # Email delivery stays off unless every MAIL_* value is provided
    MAIL_ENABLED: bool = False
    MAIL_USERNAME: Optional[str] = None
    MAIL_PASSWORD: Optional[str] = None
    MAIL_FROM: Optional[str] = None
    MAIL_FROM_NAME: str = "Storefront"
    MAIL_PORT: int = 587
    MAIL_SERVER: Optional[str] = None
    MAIL_STARTTLS: bool = True
    MAIL_SSL_TLS: bool = False
    USE_CREDENTIALS: bool = True
    VALIDATE_CERTS: bool = True

    model_config = SettingsConfigDict(
        env_file='.env',
        extra='ignore',
        frozen=True,
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
