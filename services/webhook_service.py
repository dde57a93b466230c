"""
Webhook Service - provisions accounts for completed checkouts

Flow: read payload -> validate secret -> normalize fields -> provision
identity/profile/onboarding -> commit -> send sign-in link (best effort).
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from backend.identity.base import IdentityProvider
from backend.program.rules import utcnow
from backend.webhook.errors import ProvisioningFailure
from backend.webhook.normalizer import extract_secret, normalize_registration
from backend.webhook.notifier import resolve_base_url, send_sign_in_link
from backend.webhook.provisioner import AccountProvisioner
from backend.webhook.reader import read_payload
from backend.webhook.secret import validate_secret
from config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class WebhookService:
    """
    Service class for the payment webhook.
    Raises WebhookError subclasses; the router maps them to HTTP responses.
    """

    def __init__(
        self,
        db: AsyncSession,
        identities: IdentityProvider,
        settings: Optional[Settings] = None,
        now: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the webhook service.

        Args:
            db: AsyncSession instance for database operations
            identities: Identity provider (auth backend)
            settings: Settings to read secrets and URLs from
            now: Clock used for the received-at timestamp
        """
        self.db = db
        self.identities = identities
        self.settings = settings or default_settings
        self.now = now

    def _provisioner(self) -> AccountProvisioner:
        return AccountProvisioner(
            self.db,
            self.identities,
            default_test_password=self.settings.default_test_password,
            wait_attempts=self.settings.profile_wait_attempts,
            wait_base_delay=self.settings.profile_wait_base_delay,
        )

    async def handle(self, request: Request) -> dict:
        """
        Process one webhook delivery.

        Args:
            request: Incoming request (any supported encoding)

        Returns:
            Response body for a successful registration
        """
        body = await read_payload(request)
        query = dict(request.query_params)
        headers = {k.lower(): v for k, v in request.headers.items()}

        validate_secret(extract_secret(body, query, headers), self.settings.expected_webhook_secret)

        record = normalize_registration(body, query)
        received_at = self.now()

        try:
            result = await self._provisioner().provision(record, received_at)
            await self.db.commit()
        except ProvisioningFailure:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise ProvisioningFailure(f"Failed to save registration: {e}") from e

        base_url = resolve_base_url(request, self.settings.app_url)
        notified = await send_sign_in_link(self.identities, record.email, base_url)

        if result.identity_created:
            message = "User created successfully"
        else:
            message = "User updated successfully"
        if not notified:
            message += " (sign-in email not sent)"

        return {"success": True, "user_id": result.user_id, "message": message}
