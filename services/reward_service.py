"""
Reward Service - bonus content that unlocks with slim points
"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.program.rules import points_until_bonus
from crud.bonus import BonusRepository
from database_models import User
from utils.serializers import row_to_dict

logger = logging.getLogger(__name__)


class RewardService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.bonuses = BonusRepository(db)

    async def get_rewards(self, user: User):
        """
        Active bonuses with the user's status for each.

        Returns:
            Normalized response with points and a list of bonuses, each tagged
            unlocked / available / locked
        """
        bonuses = await self.bonuses.list_bonuses(active_only=True)
        unlocked = await self.bonuses.unlocked_ids(user.id)

        items = []
        for bonus in bonuses:
            item = row_to_dict(bonus)
            if bonus.id in unlocked:
                item["status"] = "unlocked"
                item["points_needed"] = 0
            elif user.slim_points >= bonus.unlock_points:
                item["status"] = "available"
                item["points_needed"] = 0
            else:
                item["status"] = "locked"
                item["points_needed"] = bonus.unlock_points - user.slim_points
            items.append(item)

        return {
            "data": {
                "slim_points": user.slim_points,
                "bonus_unlocked": user.bonus_unlocked,
                "points_until_bonus": points_until_bonus(user.slim_points),
                "bonuses": items,
            },
            "is_error": False,
        }

    async def unlock(self, user: User, bonus_id: int):
        """
        Unlock one bonus for the user if they have enough points.
        Unlocking twice is not an error.
        """
        bonus = await self.bonuses.get_bonus(bonus_id)
        if bonus is None or not bonus.is_active:
            return {"error": "bonus_not_found", "message": "Bonus not found", "status": 404, "is_error": True}

        if bonus.id in await self.bonuses.unlocked_ids(user.id):
            return {"data": {"bonus": row_to_dict(bonus), "already_unlocked": True}, "is_error": False}

        if user.slim_points < bonus.unlock_points:
            return {
                "error": "not_enough_points",
                "message": f"{bonus.unlock_points - user.slim_points} more points needed",
                "status": 403,
                "is_error": True,
            }

        try:
            await self.bonuses.create_unlock(user.id, bonus.id)
            await self.db.commit()
        except IntegrityError:
            # Concurrent unlock of the same bonus
            await self.db.rollback()
            return {"data": {"bonus_id": bonus_id, "already_unlocked": True}, "is_error": False}

        logger.info(f"User {user.id} unlocked bonus {bonus.id}")
        return {"data": {"bonus": row_to_dict(bonus), "already_unlocked": False}, "is_error": False}

    async def unlock_eligible(self, user_id: str, points: int) -> List[int]:
        """
        Unlock every active bonus whose threshold is within `points`.
        Does not commit; the caller owns the transaction.

        Returns:
            IDs of the bonuses newly unlocked
        """
        already = await self.bonuses.unlocked_ids(user_id)
        new_ids = []
        for bonus in await self.bonuses.list_eligible(points):
            if bonus.id in already:
                continue
            await self.bonuses.create_unlock(user_id, bonus.id)
            new_ids.append(bonus.id)
        if new_ids:
            logger.info(f"Auto-unlocked bonuses {new_ids} for {user_id}")
        return new_ids
