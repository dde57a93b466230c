"""
Configuration settings for the application
"""
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Program constants
PROGRAM_LENGTH_DAYS = 30
POINTS_FOR_COMPLETION = 1
BONUS_UNLOCK_THRESHOLD = 40

PROFILE_TYPES = (
    "hormonal",
    "inflammatory",
    "cortisol",
    "metabolic",
    "retention",
    "insulinic",
)
SUBSCRIPTION_PLANS = ("monthly", "annual")

PRODUCTION_FALLBACK_URL = "https://slimpathai.com"


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Webhook authentication (NEXT_PUBLIC_WEBHOOK_SECRET kept for older deployments)
    webhook_secret: Optional[str] = Field(default=None, alias="WEBHOOK_SECRET")
    legacy_webhook_secret: Optional[str] = Field(default=None, alias="NEXT_PUBLIC_WEBHOOK_SECRET")

    # Public URL used to build sign-in redirects
    app_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("APP_URL", "NEXT_PUBLIC_APP_URL", "app_url"),
    )

    # Core authentication and security
    jwt_secret_key: Optional[str] = Field(default=None, alias="JWT_SECRET_KEY")
    admin_emails: Optional[str] = Field(default=None, alias="ADMIN_EMAILS")

    # Managed auth backend (Supabase); local identities are used when unset
    supabase_url: Optional[str] = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(default=None, alias="SUPABASE_SERVICE_ROLE_KEY")
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")

    # Outbound email for magic links
    smtp_host: Optional[str] = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: Optional[str] = Field(default=None, alias="SMTP_USER")
    smtp_password: Optional[str] = Field(default=None, alias="SMTP_PASSWORD")
    email_from: str = Field(default="SlimPath <no-reply@slimpathai.com>", alias="EMAIL_FROM")
    magic_link_expiry_minutes: int = Field(default=60, alias="MAGIC_LINK_EXPIRY_MINUTES")

    # Provisioning
    default_test_password: str = Field(default="TestUser123!", alias="DEFAULT_TEST_PASSWORD")
    profile_wait_attempts: int = Field(default=3, alias="PROFILE_WAIT_ATTEMPTS")
    profile_wait_base_delay: float = Field(default=0.25, alias="PROFILE_WAIT_BASE_DELAY")

    # Infrastructure configuration
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    database_url: Optional[str] = Field(default="sqlite+aiosqlite:///./slimpath.db", alias="DATABASE_URL")
    rate_limit_per_minute: int = Field(default=60, alias="RATE_LIMIT_PER_MINUTE")

    # Frontend configuration
    frontend_url: Optional[str] = Field(default="http://localhost:3000", alias="FRONTEND_URL")

    # Render.com deployment configuration
    render: Optional[str] = Field(default=None, alias="RENDER")
    render_external_url: Optional[str] = Field(default=None, alias="RENDER_EXTERNAL_URL")

    # Environment configuration
    env: Optional[str] = Field(default=None, alias="ENV")

    @property
    def expected_webhook_secret(self) -> Optional[str]:
        return self.webhook_secret or self.legacy_webhook_secret

    @property
    def admin_email_list(self) -> List[str]:
        if not self.admin_emails:
            return []
        return [e.strip().lower() for e in self.admin_emails.split(",") if e.strip()]

    @property
    def uses_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.render) or (settings.env and settings.env.lower() == "production")
