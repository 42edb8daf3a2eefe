"""
Application configuration
Read from environment variables or a local .env file
"""
from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    APP_NAME: str = "Front Desk Reservation API"
    LOG_LEVEL: str = "INFO"

    # JWT
    SECRET_KEY: str = "your-secret-key-keep-it-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Billing
    DEFAULT_CURRENCY: str = "USD"
    NO_SHOW_FEE: Decimal = Decimal("0")

    # Reject check-in before the arrival date
    ENFORCE_ARRIVAL_DATE: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
