"""
Rewards Router - bonus content unlocked with slim points
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from backend.utils.responses import service_response
from database import get_db
from database_models import User
from services.reward_service import RewardService

rewards_router = APIRouter(prefix="/api/rewards", tags=["rewards"])


@rewards_router.get("")
async def list_rewards(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await RewardService(db).get_rewards(user)
    return service_response(result)


@rewards_router.post("/{bonus_id}/unlock")
async def unlock_reward(
    bonus_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Unlock a bonus. Unlocking an already unlocked bonus returns 200.
    """
    result = await RewardService(db).unlock(user, bonus_id)
    return service_response(result, message="Bonus unlocked")
