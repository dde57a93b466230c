"""
Best-effort sign-in link delivery after provisioning.
"""
import logging
from typing import Optional

from starlette.requests import Request

from backend.identity.base import IdentityProvider
from backend.webhook.errors import NotificationFailure
from config.settings import PRODUCTION_FALLBACK_URL

logger = logging.getLogger(__name__)

ONBOARDING_PATH = "/onboarding"


def resolve_base_url(request: Optional[Request], configured: Optional[str]) -> str:
    """
    Public base URL for redirects: configured value, else the request's own
    origin (proxy headers first), else the production domain.
    """
    if configured:
        return configured.rstrip("/")
    if request is not None:
        host = request.headers.get("x-forwarded-host") or request.headers.get("host")
        if host:
            scheme = request.headers.get("x-forwarded-proto") or request.url.scheme or "https"
            return f"{scheme.split(',')[0].strip()}://{host.split(',')[0].strip()}"
    return PRODUCTION_FALLBACK_URL


def public_base_url(configured: Optional[str]) -> str:
    """
    Base URL for links requested by unauthenticated callers.
    Request headers are never consulted: a client could point the link at its own host.
    """
    return resolve_base_url(None, configured)


async def send_sign_in_link(identities: IdentityProvider, email: str, base_url: str) -> bool:
    """
    Email a passwordless link that lands on onboarding.

    Returns:
        True if sent. Failures are logged and reported as False, never raised.
    """
    redirect_to = f"{base_url}{ONBOARDING_PATH}"
    try:
        await identities.send_magic_link(email, redirect_to)
    except Exception as e:
        failure = NotificationFailure(f"Sign-in link not sent: {e}")
        logger.error(f"{failure.detail} (account was provisioned)", exc_info=True)
        return False
    logger.info(f"Sign-in link sent, redirecting to {redirect_to}")
    return True
