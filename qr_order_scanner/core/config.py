import os
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from fastapi import Request


def _csv(raw: Optional[str]) -> List[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


class Settings:
    """runtime configuration, built once at startup and handed to create_app."""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        env = os.environ if env is None else env

        # app settings
        self.APP_ENV: str = env.get("APP_ENV", "dev")
        self.APP_HOST: str = env.get("APP_HOST", "0.0.0.0")
        self.APP_PORT: int = int(env.get("APP_PORT", "8000"))
        self.LOG_LEVEL: str = env.get("LOG_LEVEL", "INFO").upper()

        # CORS stuff
        self.ALLOWED_ORIGINS: List[str] = _csv(env.get("ALLOWED_ORIGINS", "*")) or ["*"]

        # Shopify app credentials
        self.SHOPIFY_API_KEY: Optional[str] = env.get("SHOPIFY_API_KEY")
        self.SHOPIFY_API_SECRET: Optional[str] = env.get("SHOPIFY_API_SECRET")
        self.SHOPIFY_APP_URL: Optional[str] = env.get("SHOPIFY_APP_URL")
        self.SCOPES: Optional[str] = env.get("SCOPES")
        self.SHOPIFY_API_VERSION: str = env.get("SHOPIFY_API_VERSION", "2024-10")
        self.UPSTREAM_TIMEOUT_SECONDS: float = float(env.get("UPSTREAM_TIMEOUT_SECONDS", "30"))

        # custom-app mode: a single shop with a static admin token
        self.SHOPIFY_SHOP: Optional[str] = env.get("SHOPIFY_SHOP")
        self.SHOPIFY_ACCESS_TOKEN: Optional[str] = env.get("SHOPIFY_ACCESS_TOKEN")
        # store handle used in admin.shopify.com links
        self.SHOPIFY_STORE_HANDLE: Optional[str] = env.get("SHOPIFY_STORE_HANDLE")

        self.DEFAULT_CURRENCY: str = env.get("DEFAULT_CURRENCY", "JPY")

        # session storage
        self.DATABASE_URL: str = env.get("DATABASE_URL", "sqlite:///./qr_order_scanner.db")
        self.DB_POOL_SIZE: int = int(env.get("DB_POOL_SIZE", "5"))
        self.DB_MAX_OVERFLOW: int = int(env.get("DB_MAX_OVERFLOW", "10"))

        # email via Resend
        self.RESEND_API_KEY: Optional[str] = env.get("RESEND_API_KEY")
        self.FROM_EMAIL: Optional[str] = env.get("FROM_EMAIL")
        self.FROM_NAME: str = env.get("FROM_NAME", "QR Order Scanner")

        # SMS via Twilio
        self.TWILIO_ACCOUNT_SID: Optional[str] = env.get("TWILIO_ACCOUNT_SID")
        self.TWILIO_AUTH_TOKEN: Optional[str] = env.get("TWILIO_AUTH_TOKEN")
        self.TWILIO_FROM_NUMBER: Optional[str] = env.get("TWILIO_FROM_NUMBER")

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() in ("prod", "production")

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.SHOPIFY_SHOP and self.SHOPIFY_ACCESS_TOKEN)


def load_settings(env_file: Optional[str] = None) -> Settings:
    # grab env vars from .env file
    load_dotenv(env_file)
    return Settings()


def get_settings(request: Request) -> Settings:
    """fastAPI dependency: the settings instance the app was created with."""
    return request.app.state.settings
