"""
Account provisioner: makes sure an identity, a profile row and an onboarding
record exist for a registration, updating what is already there.

Safe to run repeatedly for the same email; nothing is duplicated and an
already completed onboarding is never reset.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.identity.base import Identity, IdentityError, IdentityProvider
from backend.program.rules import subscription_end_date
from backend.webhook.errors import ProvisioningFailure
from backend.webhook.normalizer import RegistrationRecord
from crud.onboarding import OnboardingRepository
from crud.user import UserRepository
from database_models import User

logger = logging.getLogger(__name__)

WEBHOOK_SOURCE = "cartpanda"


@dataclass
class ProvisioningResult:
    user_id: str
    identity_created: bool
    profile_created: bool
    onboarding_created: bool


class AccountProvisioner:

    def __init__(
        self,
        db: AsyncSession,
        identities: IdentityProvider,
        default_test_password: Optional[str] = None,
        wait_attempts: int = 3,
        wait_base_delay: float = 0.25,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            db: Session for the profile and onboarding tables
            identities: Auth backend
            default_test_password: Password given to zero-amount signups without one
            wait_attempts: Retries when looking for a trigger-created profile row
            wait_base_delay: First retry delay in seconds, doubled on every retry
            sleep: Awaitable sleep, replaceable in tests
        """
        self.db = db
        self.identities = identities
        self.users = UserRepository(db)
        self.onboarding = OnboardingRepository(db)
        self.default_test_password = default_test_password
        self.wait_attempts = wait_attempts
        self.wait_base_delay = wait_base_delay
        self.sleep = sleep

    async def provision(self, record: RegistrationRecord, received_at: datetime) -> ProvisioningResult:
        """
        Run the identity -> profile -> onboarding sequence.

        Args:
            record: Normalized registration
            received_at: Request time; the subscription end date is computed from it

        Returns:
            ProvisioningResult describing what was created

        Raises:
            ProvisioningFailure: identity or profile step failed
        """
        identity, identity_created = await self._ensure_identity(record)

        if identity_created and self.identities.creates_profile_rows:
            existing = await self.wait_for_profile(identity.id)
        else:
            existing = await self.users.get_user_by_id(identity.id)

        user, profile_created = await self._upsert_profile(record, identity.id, received_at, existing)
        onboarding_created = await self._ensure_onboarding(user.id)

        return ProvisioningResult(
            user_id=user.id,
            identity_created=identity_created,
            profile_created=profile_created,
            onboarding_created=onboarding_created,
        )

    async def _ensure_identity(self, record: RegistrationRecord) -> Tuple[Identity, bool]:
        try:
            identity = await self.identities.find_by_email(record.email)
        except IdentityError as e:
            raise ProvisioningFailure(f"Identity lookup failed: {e}") from e

        if identity:
            logger.info(f"Reusing existing identity {identity.id}")
            if record.password:
                try:
                    await self.identities.update_password(identity.id, record.password)
                except IdentityError as e:
                    raise ProvisioningFailure(f"Password update failed: {e}") from e
                logger.info(f"Password updated for identity {identity.id}")
            return identity, False

        password = record.password
        if record.is_test_signup and not password:
            password = self.default_test_password

        try:
            identity = await self.identities.create_identity(
                email=record.email,
                password=password,
                email_confirmed=not record.is_test_signup,
                metadata={"full_name": record.name, "profile_type": record.profile_type},
            )
        except IdentityError as e:
            logger.error(f"Identity creation failed for webhook registration: {e}")
            raise ProvisioningFailure(f"Failed to create auth user: {e}") from e

        logger.info(
            f"Created identity {identity.id} "
            f"({'test signup, unconfirmed' if record.is_test_signup else 'paid, confirmed'})"
        )
        return identity, True

    async def wait_for_profile(self, user_id: str) -> Optional[User]:
        """
        Look for a profile row that a backend trigger may insert after the
        identity is created. Checks once, then retries with exponential backoff.
        """
        for attempt in range(self.wait_attempts + 1):
            user = await self.users.get_user_by_id(user_id)
            if user is not None or attempt == self.wait_attempts:
                return user
            delay = self.wait_base_delay * (2 ** attempt)
            logger.debug(f"Profile {user_id} not visible yet, retrying in {delay:.2f}s")
            await self.sleep(delay)
        return None

    async def _upsert_profile(
        self,
        record: RegistrationRecord,
        user_id: str,
        received_at: datetime,
        existing: Optional[User],
    ) -> Tuple[User, bool]:
        webhook_data = {
            "transaction_id": record.transaction_id,
            "amount": record.amount,
            "source": WEBHOOK_SOURCE,
            "received_at": received_at.isoformat(),
        }
        updates = {
            "profile_type": record.profile_type,
            "subscription_plan": record.subscription_plan,
            "subscription_end_date": subscription_end_date(record.subscription_plan, received_at),
            "status": "active",
        }
        if record.name:
            updates["full_name"] = record.name

        try:
            if existing is not None:
                updates["webhook_data"] = {**(existing.webhook_data or {}), **webhook_data}
                user = await self.users.update_user(existing, updates)
                logger.info(f"Profile {user_id} updated")
                return user, False

            user = await self.users.create_user({
                "id": user_id,
                "email": record.email,
                **updates,
                "webhook_data": webhook_data,
                "current_day": 1,
                "slim_points": 0,
                "bonus_unlocked": False,
            })
            logger.info(f"Profile {user_id} created")
            return user, True
        except SQLAlchemyError as e:
            raise ProvisioningFailure(f"Failed to write profile: {e}") from e

    async def _ensure_onboarding(self, user_id: str) -> bool:
        """Insert a blank onboarding record if none exists. Failures are logged only."""
        try:
            async with self.db.begin_nested():
                if await self.onboarding.get_by_user_id(user_id) is not None:
                    return False
                await self.onboarding.create_blank(user_id)
            return True
        except SQLAlchemyError as e:
            logger.error(f"Could not ensure onboarding record for {user_id}: {e}", exc_info=True)
            return False
