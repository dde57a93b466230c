"""
FastAPI dependencies that construct the identity provider for a request.

Tests override `get_identity_provider` (or `get_mailer`) through
`app.dependency_overrides`.
"""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.identity.base import IdentityProvider
from backend.identity.local import LocalIdentityProvider
from backend.identity.supabase_provider import SupabaseIdentityProvider, create_admin_client, create_anon_client
from config.settings import settings
from database import get_db
from services.email_service import SmtpMailer


@lru_cache(maxsize=1)
def _supabase_admin_client():
    return create_admin_client()


def get_mailer() -> SmtpMailer:
    return SmtpMailer.from_settings()


def get_identity_provider(
    db: AsyncSession = Depends(get_db),
    mailer: SmtpMailer = Depends(get_mailer),
) -> IdentityProvider:
    if settings.uses_supabase:
        default_next = f"{settings.app_url.rstrip('/')}/onboarding" if settings.app_url else None
        return SupabaseIdentityProvider(_supabase_admin_client(), create_anon_client(), default_next=default_next)
    return LocalIdentityProvider(db, mailer=mailer)
