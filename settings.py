from __future__ import annotations
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PORT: int = 4000
    LOG_LEVEL: str = "INFO"

    # Mongo
    MONGO_URL: Optional[str] = None
    DATABASE_NAME: str = "anvis_tea"
    MONGO_CONNECT_TIMEOUT_MS: int = 5000

    # Order notification email
    ORDER_EMAIL_USER: Optional[str] = None
    ORDER_EMAIL_PASS: Optional[str] = None
    ORDER_NOTIFY_TO: Optional[str] = None
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    ORDER_CURRENCY_SYMBOL: str = "₹"

    @property
    def notify_to(self) -> Optional[str]:
        return self.ORDER_NOTIFY_TO or self.ORDER_EMAIL_USER


settings = Settings()
