"""
OnboardingRepository for the per-user intake record
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import UserOnboarding


class OnboardingRepository:
    """Repository for UserOnboarding rows (at most one per user)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user_id(self, user_id: str) -> Optional[UserOnboarding]:
        result = await self.db.execute(
            select(UserOnboarding).where(UserOnboarding.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_blank(self, user_id: str) -> UserOnboarding:
        """
        Insert an empty, uncompleted onboarding record.

        Args:
            user_id: Identity ID of the owner

        Returns:
            Created UserOnboarding object
        """
        record = UserOnboarding(
            user_id=user_id,
            medications=[],
            physical_limitations=[],
            dietary_restrictions=[],
            onboarding_completed=False,
        )
        self.db.add(record)
        await self.db.flush()
        await self.db.refresh(record)
        return record

    async def upsert(self, user_id: str, values: dict) -> UserOnboarding:
        """
        Update the user's onboarding record, creating it first if absent.

        Args:
            user_id: Identity ID of the owner
            values: Column values to write

        Returns:
            The stored UserOnboarding object
        """
        record = await self.get_by_user_id(user_id)
        if record is None:
            record = await self.create_blank(user_id)
        for key, value in values.items():
            if hasattr(record, key):
                setattr(record, key, value)
        await self.db.flush()
        await self.db.refresh(record)
        return record
