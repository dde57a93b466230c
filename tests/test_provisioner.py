"""
Unit tests for AccountProvisioner
"""
from datetime import datetime

import pytest
from sqlalchemy import func, select

from backend.identity.base import IdentityError
from backend.identity.local import LocalIdentityProvider
from backend.webhook.errors import ProvisioningFailure
from backend.webhook.normalizer import RegistrationRecord
from backend.webhook.provisioner import AccountProvisioner
from database_models import User, UserOnboarding

RECEIVED_AT = datetime(2024, 1, 31, 12, 0, 0)


class SleepRecorder:
    def __init__(self, on_sleep=None):
        self.delays = []
        self.on_sleep = on_sleep

    async def __call__(self, delay):
        self.delays.append(delay)
        if self.on_sleep:
            await self.on_sleep(len(self.delays))


class TriggerBackedIdentityProvider(LocalIdentityProvider):
    creates_profile_rows = True


class BrokenIdentityProvider(LocalIdentityProvider):
    async def create_identity(self, email, password=None, email_confirmed=False, metadata=None):
        raise IdentityError("auth backend unavailable")


def _record(**overrides):
    values = {
        "email": "a@x.com",
        "profile_type": "hormonal",
        "subscription_plan": "monthly",
        "name": "Ana",
        "amount": 37,
        "transaction_id": "tx-1",
    }
    values.update(overrides)
    return RegistrationRecord(**values)


@pytest.mark.asyncio
async def test_wait_for_profile_backs_off_exponentially(test_db):
    sleep = SleepRecorder()
    provisioner = AccountProvisioner(
        test_db, LocalIdentityProvider(test_db), wait_attempts=3, wait_base_delay=0.25, sleep=sleep
    )

    assert await provisioner.wait_for_profile("missing-id") is None
    assert sleep.delays == [0.25, 0.5, 1.0]


@pytest.mark.asyncio
async def test_wait_for_profile_returns_row_created_meanwhile(test_db):
    async def trigger(calls):
        test_db.add(User(id="late-id", email="late@x.com"))
        await test_db.flush()

    sleep = SleepRecorder(on_sleep=trigger)
    provisioner = AccountProvisioner(test_db, LocalIdentityProvider(test_db), wait_attempts=3, sleep=sleep)

    user = await provisioner.wait_for_profile("late-id")

    assert user is not None
    assert len(sleep.delays) == 1


@pytest.mark.asyncio
async def test_trigger_created_profile_is_updated_not_duplicated(test_db):
    identities = TriggerBackedIdentityProvider(test_db)

    async def trigger(calls):
        identity = await identities.find_by_email("a@x.com")
        test_db.add(User(id=identity.id, email="a@x.com", status="pending"))
        await test_db.flush()

    provisioner = AccountProvisioner(test_db, identities, wait_attempts=2, sleep=SleepRecorder(on_sleep=trigger))

    result = await provisioner.provision(_record(), RECEIVED_AT)

    assert result.identity_created is True
    assert result.profile_created is False
    assert result.onboarding_created is True
    user = await test_db.get(User, result.user_id)
    assert user.status == "active"
    assert user.subscription_end_date == datetime(2024, 2, 29, 12, 0, 0)
    assert await test_db.scalar(select(func.count()).select_from(User)) == 1


@pytest.mark.asyncio
async def test_no_wait_when_provider_has_no_profile_trigger(test_db):
    sleep = SleepRecorder()
    provisioner = AccountProvisioner(
        test_db, LocalIdentityProvider(test_db), wait_attempts=3, wait_base_delay=0.25, sleep=sleep
    )

    result = await provisioner.provision(_record(), RECEIVED_AT)

    assert result.identity_created is True
    assert result.profile_created is True
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_existing_completed_onboarding_is_kept(test_db):
    identities = LocalIdentityProvider(test_db)
    provisioner = AccountProvisioner(test_db, identities, wait_attempts=0)
    first = await provisioner.provision(_record(), RECEIVED_AT)
    onboarding = (await test_db.execute(select(UserOnboarding))).scalar_one()
    onboarding.onboarding_completed = True
    await test_db.flush()

    second = await provisioner.provision(_record(transaction_id="tx-2", name=None), RECEIVED_AT)

    assert second.user_id == first.user_id
    assert second.identity_created is False
    assert second.onboarding_created is False
    onboarding = (await test_db.execute(select(UserOnboarding))).scalar_one()
    assert onboarding.onboarding_completed is True
    user = await test_db.get(User, first.user_id)
    # A missing name never blanks out the stored one
    assert user.full_name == "Ana"
    assert user.webhook_data["transaction_id"] == "tx-2"


@pytest.mark.asyncio
async def test_test_signup_gets_default_password_and_stays_unconfirmed(test_db):
    identities = LocalIdentityProvider(test_db)
    provisioner = AccountProvisioner(test_db, identities, default_test_password="TestUser123!", wait_attempts=0)

    await provisioner.provision(_record(amount=0), RECEIVED_AT)

    identity = await identities.authenticate("a@x.com", "TestUser123!")
    assert identity is not None
    assert identity.email_confirmed is False
    assert identity.metadata["profile_type"] == "hormonal"


@pytest.mark.asyncio
async def test_identity_failure_becomes_provisioning_failure(test_db):
    provisioner = AccountProvisioner(test_db, BrokenIdentityProvider(test_db), wait_attempts=0)

    with pytest.raises(ProvisioningFailure) as exc:
        await provisioner.provision(_record(), RECEIVED_AT)

    assert exc.value.status_code == 500
    assert await test_db.scalar(select(func.count()).select_from(User)) == 0
