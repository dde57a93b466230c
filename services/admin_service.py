"""
Admin Service - manage daily program content and bonus content
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import PROFILE_TYPES
from crud.bonus import BonusRepository
from crud.program import ContentRepository
from models.program import (
    BonusContentRequest,
    BonusContentUpdate,
    DailyContentRequest,
    DailyContentUpdate,
    DailyTaskRequest,
    ProfileContentRequest,
)
from utils.serializers import row_to_dict

logger = logging.getLogger(__name__)


def _not_found(what: str, key) -> dict:
    return {"error": f"{what}_not_found", "message": f"{what.replace('_', ' ').capitalize()} {key} not found", "status": 404, "is_error": True}


def _duplicate_day(day_number: int) -> dict:
    return {
        "error": "duplicate_day",
        "message": f"Content for day {day_number} already exists",
        "status": 409,
        "is_error": True,
    }


class AdminService:
    """
    Service class for the admin panel.
    Every write commits on success.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.content = ContentRepository(db)
        self.bonuses = BonusRepository(db)

    # Daily content

    async def list_daily_content(self):
        rows = await self.content.list_daily_content()
        return {"data": {"daily_content": [row_to_dict(r) for r in rows]}, "is_error": False}

    async def get_daily_content(self, content_id: int):
        """One day with its tasks and every profile-specific variant."""
        content = await self.content.get_daily_content(content_id)
        if content is None:
            return _not_found("daily_content", content_id)

        tasks = await self.content.list_tasks(content.id)
        variants = {}
        for profile_type in PROFILE_TYPES:
            record = await self.content.get_profile_content(content.id, profile_type)
            if record is not None:
                variants[profile_type] = row_to_dict(record)

        data = row_to_dict(content)
        data["tasks"] = [row_to_dict(t) for t in tasks]
        data["profile_content"] = variants
        return {"data": data, "is_error": False}

    async def create_daily_content(self, request: DailyContentRequest):
        if await self.content.get_content_for_day(request.day_number) is not None:
            return _duplicate_day(request.day_number)
        try:
            content = await self.content.create_daily_content(request.model_dump())
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return _duplicate_day(request.day_number)

        logger.info(f"Created daily content for day {content.day_number}")
        return {"data": row_to_dict(content), "is_error": False}

    async def update_daily_content(self, content_id: int, request: DailyContentUpdate):
        content = await self.content.get_daily_content(content_id)
        if content is None:
            return _not_found("daily_content", content_id)

        values = request.model_dump(exclude_unset=True)
        day_number = values.get("day_number")
        if day_number is not None and day_number != content.day_number:
            if await self.content.get_content_for_day(day_number) is not None:
                return _duplicate_day(day_number)

        try:
            content = await self.content.update_daily_content(content, values)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return _duplicate_day(day_number)
        return {"data": row_to_dict(content), "is_error": False}

    async def delete_daily_content(self, content_id: int):
        content = await self.content.get_daily_content(content_id)
        if content is None:
            return _not_found("daily_content", content_id)
        day_number = content.day_number
        await self.content.delete_daily_content(content)
        await self.db.commit()
        logger.info(f"Deleted daily content for day {day_number}")
        return {"data": {"deleted": content_id}, "is_error": False}

    # Tasks

    async def add_task(self, content_id: int, request: DailyTaskRequest):
        if await self.content.get_daily_content(content_id) is None:
            return _not_found("daily_content", content_id)
        task = await self.content.create_task(content_id, request.task_text, request.task_order)
        await self.db.commit()
        return {"data": row_to_dict(task), "is_error": False}

    async def delete_task(self, content_id: int, task_id: int):
        task = await self.content.get_task(task_id)
        if task is None or task.daily_content_id != content_id:
            return _not_found("task", task_id)
        await self.content.delete_task(task)
        await self.db.commit()
        return {"data": {"deleted": task_id}, "is_error": False}

    # Profile-specific content

    async def set_profile_content(self, content_id: int, profile_type: str, request: ProfileContentRequest):
        if profile_type not in PROFILE_TYPES:
            return {
                "error": "invalid_profile_type",
                "message": f"profile_type must be one of {', '.join(PROFILE_TYPES)}",
                "status": 400,
                "is_error": True,
            }
        if await self.content.get_daily_content(content_id) is None:
            return _not_found("daily_content", content_id)

        record = await self.content.upsert_profile_content(content_id, profile_type, request.model_dump())
        await self.db.commit()
        return {"data": row_to_dict(record), "is_error": False}

    # Bonus content

    async def list_bonus_content(self):
        rows = await self.bonuses.list_bonuses(active_only=False)
        return {"data": {"bonus_content": [row_to_dict(r) for r in rows]}, "is_error": False}

    async def create_bonus_content(self, request: BonusContentRequest):
        bonus = await self.bonuses.create_bonus(request.model_dump())
        await self.db.commit()
        logger.info(f"Created bonus {bonus.id} ({bonus.unlock_points} points)")
        return {"data": row_to_dict(bonus), "is_error": False}

    async def update_bonus_content(self, bonus_id: int, request: BonusContentUpdate):
        bonus = await self.bonuses.get_bonus(bonus_id)
        if bonus is None:
            return _not_found("bonus", bonus_id)
        bonus = await self.bonuses.update_bonus(bonus, request.model_dump(exclude_unset=True))
        await self.db.commit()
        return {"data": row_to_dict(bonus), "is_error": False}

    async def delete_bonus_content(self, bonus_id: int):
        bonus = await self.bonuses.get_bonus(bonus_id)
        if bonus is None:
            return _not_found("bonus", bonus_id)
        await self.bonuses.delete_bonus(bonus)
        await self.db.commit()
        return {"data": {"deleted": bonus_id}, "is_error": False}
