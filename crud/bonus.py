"""
BonusRepository for bonus content and per-user unlocks
"""

from typing import List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import BonusContent, UserBonusUnlock


class BonusRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_bonuses(self, active_only: bool = True) -> List[BonusContent]:
        query = select(BonusContent).order_by(BonusContent.unlock_points, BonusContent.id)
        if active_only:
            query = query.where(BonusContent.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_eligible(self, points: int) -> List[BonusContent]:
        result = await self.db.execute(
            select(BonusContent).where(
                BonusContent.is_active.is_(True),
                BonusContent.unlock_points <= points,
            )
        )
        return list(result.scalars().all())

    async def get_bonus(self, bonus_id: int) -> Optional[BonusContent]:
        result = await self.db.execute(select(BonusContent).where(BonusContent.id == bonus_id))
        return result.scalar_one_or_none()

    async def create_bonus(self, values: dict) -> BonusContent:
        bonus = BonusContent(**values)
        self.db.add(bonus)
        await self.db.flush()
        await self.db.refresh(bonus)
        return bonus

    async def update_bonus(self, bonus: BonusContent, values: dict) -> BonusContent:
        for key, value in values.items():
            if hasattr(bonus, key):
                setattr(bonus, key, value)
        await self.db.flush()
        await self.db.refresh(bonus)
        return bonus

    async def delete_bonus(self, bonus: BonusContent) -> None:
        await self.db.execute(delete(UserBonusUnlock).where(UserBonusUnlock.bonus_content_id == bonus.id))
        await self.db.delete(bonus)
        await self.db.flush()

    async def unlocked_ids(self, user_id: str) -> Set[int]:
        result = await self.db.execute(
            select(UserBonusUnlock.bonus_content_id).where(UserBonusUnlock.user_id == user_id)
        )
        return set(result.scalars().all())

    async def create_unlock(self, user_id: str, bonus_id: int) -> UserBonusUnlock:
        unlock = UserBonusUnlock(user_id=user_id, bonus_content_id=bonus_id)
        self.db.add(unlock)
        await self.db.flush()
        return unlock
