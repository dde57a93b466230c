"""
Identity provider backed by Supabase Auth.

The service-role client drives the admin API (list/create/update users); the
anon client sends sign-in links and verifies them, as a browser would. The
supabase client is synchronous, so every call runs in a worker thread.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from supabase import Client, ClientOptions, create_client

from backend.identity.base import Identity, IdentityError, IdentityProvider
from config.settings import settings

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 1000


def _to_identity(user) -> Identity:
    return Identity(
        id=str(user.id),
        email=(user.email or "").lower(),
        email_confirmed=bool(getattr(user, "email_confirmed_at", None)),
        metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


def _client_options() -> ClientOptions:
    # gotrue would otherwise keep and refresh the last signed-in user's session
    return ClientOptions(persist_session=False, auto_refresh_token=False)


def _require_supabase() -> None:
    if not settings.uses_supabase:
        raise IdentityError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")


def create_admin_client() -> Client:
    """Service-role client for the admin API. Holds no user session, so it can be shared."""
    _require_supabase()
    return create_client(settings.supabase_url, settings.supabase_service_role_key, options=_client_options())


def create_anon_client() -> Client:
    """Client for sign-in calls. Build one per request: signing in stores the user's session on it."""
    _require_supabase()
    return create_client(
        settings.supabase_url,
        settings.supabase_anon_key or settings.supabase_service_role_key,
        options=_client_options(),
    )


class SupabaseIdentityProvider(IdentityProvider):

    # The project database inserts a profile row for every new auth user
    creates_profile_rows = True

    def __init__(self, admin_client: Client, anon_client: Client, default_next: Optional[str] = None):
        self.admin = admin_client
        self.anon = anon_client
        self.default_next = default_next

    async def _call(self, description: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            raise IdentityError(f"Supabase {description} failed: {e}") from e

    async def find_by_email(self, email: str) -> Optional[Identity]:
        email = email.strip().lower()
        page = 1
        while True:
            users = await self._call(
                "list users",
                lambda p=page: self.admin.auth.admin.list_users(page=p, per_page=LIST_PAGE_SIZE),
            )
            for user in users or []:
                if (user.email or "").lower() == email:
                    return _to_identity(user)
            if not users or len(users) < LIST_PAGE_SIZE:
                return None
            page += 1

    async def get_identity(self, identity_id: str) -> Optional[Identity]:
        try:
            response = await asyncio.to_thread(self.admin.auth.admin.get_user_by_id, identity_id)
        except Exception as e:
            logger.warning(f"Supabase lookup for identity {identity_id} failed: {e}")
            return None
        return _to_identity(response.user) if response and response.user else None

    async def create_identity(
        self,
        email: str,
        password: Optional[str] = None,
        email_confirmed: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Identity:
        attributes: Dict[str, Any] = {
            "email": email.strip().lower(),
            "email_confirm": email_confirmed,
            "user_metadata": dict(metadata or {}),
        }
        if password:
            attributes["password"] = password
        response = await self._call("create user", self.admin.auth.admin.create_user, attributes)
        if not response or not response.user:
            raise IdentityError(f"Supabase returned no user for {email}")
        return _to_identity(response.user)

    async def update_password(self, identity_id: str, password: str, mark_password_set: bool = False) -> None:
        attributes: Dict[str, Any] = {"password": password}
        if mark_password_set:
            current = await self.get_identity(identity_id)
            metadata = dict(current.metadata) if current else {}
            metadata["password_set"] = True
            attributes["user_metadata"] = metadata
        await self._call("update user", self.admin.auth.admin.update_user_by_id, identity_id, attributes)

    async def send_magic_link(self, email: str, redirect_to: str) -> None:
        credentials = {
            "email": email.strip().lower(),
            "options": {"email_redirect_to": redirect_to, "should_create_user": False},
        }
        await self._call("sign in with OTP", self.anon.auth.sign_in_with_otp, credentials)

    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        try:
            response = await asyncio.to_thread(
                self.anon.auth.sign_in_with_password,
                {"email": email.strip().lower(), "password": password},
            )
        except Exception as e:
            logger.info(f"Supabase password sign-in rejected: {e}")
            return None
        return _to_identity(response.user) if response and response.user else None

    async def verify_magic_link(self, token: str) -> Tuple[Identity, Optional[str]]:
        response = await self._call(
            "verify OTP", self.anon.auth.verify_otp, {"token_hash": token, "type": "magiclink"}
        )
        if not response or not response.user:
            raise IdentityError("Invalid or expired sign-in link")
        return _to_identity(response.user), self.default_next
