"""
Identity provider backed by our own database.

Used for local development and tests, and for deployments that do not run a
hosted auth service. Passwords are argon2 hashes; sign-in links carry a
signed, short-lived token and are delivered over SMTP.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode, urlsplit

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth_utils import (
    create_magic_link_token,
    decode_magic_link_token,
    hash_password,
    verify_password,
)
from backend.identity.base import Identity, IdentityError, IdentityProvider
from backend.program.rules import utcnow
from database_models import AuthIdentity
from services.email_service import render_magic_link_email

logger = logging.getLogger(__name__)


def _to_identity(row: AuthIdentity) -> Identity:
    return Identity(
        id=row.id,
        email=row.email,
        email_confirmed=row.email_confirmed_at is not None,
        metadata=dict(row.user_metadata or {}),
    )


def build_verify_link(redirect_to: str, token: str) -> str:
    """Verification URL on the same origin as the redirect target."""
    parts = urlsplit(redirect_to)
    origin = f"{parts.scheme}://{parts.netloc}" if parts.netloc else ""
    return f"{origin}/api/auth/verify?{urlencode({'token': token})}"


class LocalIdentityProvider(IdentityProvider):

    def __init__(self, db: AsyncSession, mailer=None):
        """
        Args:
            db: Session shared with the rest of the request
            mailer: Object with a blocking send(to, subject, body) -> bool
        """
        self.db = db
        self.mailer = mailer

    async def _get_row_by_email(self, email: str) -> Optional[AuthIdentity]:
        result = await self.db.execute(
            select(AuthIdentity).where(AuthIdentity.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def _get_row(self, identity_id: str) -> Optional[AuthIdentity]:
        result = await self.db.execute(select(AuthIdentity).where(AuthIdentity.id == identity_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Optional[Identity]:
        row = await self._get_row_by_email(email)
        return _to_identity(row) if row else None

    async def get_identity(self, identity_id: str) -> Optional[Identity]:
        row = await self._get_row(identity_id)
        return _to_identity(row) if row else None

    async def create_identity(
        self,
        email: str,
        password: Optional[str] = None,
        email_confirmed: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Identity:
        row = AuthIdentity(
            email=email.strip().lower(),
            hashed_password=hash_password(password) if password else None,
            email_confirmed_at=utcnow() if email_confirmed else None,
            user_metadata=dict(metadata or {}),
        )
        try:
            async with self.db.begin_nested():
                self.db.add(row)
            await self.db.refresh(row)
        except SQLAlchemyError as e:
            raise IdentityError(f"Could not create identity for {email}: {e}") from e
        return _to_identity(row)

    async def update_password(self, identity_id: str, password: str, mark_password_set: bool = False) -> None:
        row = await self._get_row(identity_id)
        if row is None:
            raise IdentityError(f"Identity {identity_id} not found")
        row.hashed_password = hash_password(password)
        if mark_password_set:
            row.user_metadata = {**(row.user_metadata or {}), "password_set": True}
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            raise IdentityError(f"Could not update password: {e}") from e

    async def send_magic_link(self, email: str, redirect_to: str) -> None:
        row = await self._get_row_by_email(email)
        if row is None:
            raise IdentityError(f"No identity registered for {email}")
        if self.mailer is None:
            raise IdentityError("No mailer configured for sign-in links")

        token = create_magic_link_token(row.id, redirect_to)
        link = build_verify_link(redirect_to, token)
        sent = await asyncio.to_thread(
            self.mailer.send, row.email, "Your SlimPath sign-in link", render_magic_link_email(link)
        )
        if not sent:
            raise IdentityError(f"Sign-in email to {email} was not accepted")

    async def authenticate(self, email: str, password: str) -> Optional[Identity]:
        row = await self._get_row_by_email(email)
        if row is None or not verify_password(password, row.hashed_password):
            return None
        return _to_identity(row)

    async def verify_magic_link(self, token: str) -> Tuple[Identity, Optional[str]]:
        payload = decode_magic_link_token(token)
        if not payload:
            raise IdentityError("Invalid or expired sign-in link")
        row = await self._get_row(payload.get("sub", ""))
        if row is None:
            raise IdentityError("Sign-in link refers to an unknown identity")
        if row.email_confirmed_at is None:
            row.email_confirmed_at = utcnow()
            await self.db.flush()
            logger.info(f"Identity {row.id} confirmed via sign-in link")
        return _to_identity(row), payload.get("next")
