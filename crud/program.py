"""
Repositories for the 30-day program: content, tasks, progress and mood check-ins
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import (
    DailyContent,
    DailyTask,
    MoodCheckin,
    ProfileContent,
    UserDailyProgress,
)


class ContentRepository:
    """
    Repository for daily content and its tasks.
    Used by the dashboard (read) and the admin panel (write).
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_daily_content(self) -> List[DailyContent]:
        result = await self.db.execute(
            select(DailyContent).order_by(DailyContent.day_number)
        )
        return list(result.scalars().all())

    async def get_daily_content(self, content_id: int) -> Optional[DailyContent]:
        result = await self.db.execute(
            select(DailyContent).where(DailyContent.id == content_id)
        )
        return result.scalar_one_or_none()

    async def get_content_for_day(self, day_number: int) -> Optional[DailyContent]:
        result = await self.db.execute(
            select(DailyContent).where(DailyContent.day_number == day_number)
        )
        return result.scalar_one_or_none()

    async def create_daily_content(self, values: dict) -> DailyContent:
        content = DailyContent(**values)
        self.db.add(content)
        await self.db.flush()
        await self.db.refresh(content)
        return content

    async def update_daily_content(self, content: DailyContent, values: dict) -> DailyContent:
        for key, value in values.items():
            if hasattr(content, key):
                setattr(content, key, value)
        await self.db.flush()
        await self.db.refresh(content)
        return content

    async def delete_daily_content(self, content: DailyContent) -> None:
        """Delete a day together with its tasks and profile content."""
        await self.db.execute(delete(DailyTask).where(DailyTask.daily_content_id == content.id))
        await self.db.execute(delete(ProfileContent).where(ProfileContent.daily_content_id == content.id))
        await self.db.delete(content)
        await self.db.flush()

    async def list_tasks(self, content_id: int) -> List[DailyTask]:
        result = await self.db.execute(
            select(DailyTask)
            .where(DailyTask.daily_content_id == content_id)
            .order_by(DailyTask.task_order, DailyTask.id)
        )
        return list(result.scalars().all())

    async def get_task(self, task_id: int) -> Optional[DailyTask]:
        result = await self.db.execute(select(DailyTask).where(DailyTask.id == task_id))
        return result.scalar_one_or_none()

    async def create_task(self, content_id: int, task_text: str, task_order: int) -> DailyTask:
        task = DailyTask(daily_content_id=content_id, task_text=task_text, task_order=task_order)
        self.db.add(task)
        await self.db.flush()
        await self.db.refresh(task)
        return task

    async def delete_task(self, task: DailyTask) -> None:
        await self.db.delete(task)
        await self.db.flush()

    async def get_profile_content(self, content_id: int, profile_type: str) -> Optional[ProfileContent]:
        result = await self.db.execute(
            select(ProfileContent).where(
                ProfileContent.daily_content_id == content_id,
                ProfileContent.profile_type == profile_type,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_profile_content(self, content_id: int, profile_type: str, values: dict) -> ProfileContent:
        record = await self.get_profile_content(content_id, profile_type)
        if record is None:
            record = ProfileContent(daily_content_id=content_id, profile_type=profile_type, **values)
            self.db.add(record)
        else:
            for key, value in values.items():
                setattr(record, key, value)
        await self.db.flush()
        await self.db.refresh(record)
        return record


class ProgressRepository:
    """Repository for per-day progress rows and mood check-ins."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_progress(self, user_id: str, day_number: int) -> Optional[UserDailyProgress]:
        result = await self.db.execute(
            select(UserDailyProgress).where(
                UserDailyProgress.user_id == user_id,
                UserDailyProgress.day_number == day_number,
            )
        )
        return result.scalar_one_or_none()

    async def create_progress(
        self, user_id: str, day_number: int, on_date: date, tasks_total: int = 0
    ) -> UserDailyProgress:
        progress = UserDailyProgress(
            user_id=user_id,
            day_number=day_number,
            date=on_date,
            tasks_completed=[],
            tasks_total=tasks_total,
            completion_percentage=0,
            point_earned=False,
        )
        self.db.add(progress)
        await self.db.flush()
        await self.db.refresh(progress)
        return progress

    async def update_progress(self, progress: UserDailyProgress, values: dict) -> UserDailyProgress:
        for key, value in values.items():
            setattr(progress, key, value)
        await self.db.flush()
        await self.db.refresh(progress)
        return progress

    async def list_checkins(self, user_id: str, on_date: date) -> List[MoodCheckin]:
        result = await self.db.execute(
            select(MoodCheckin)
            .where(MoodCheckin.user_id == user_id, MoodCheckin.date == on_date)
            .order_by(MoodCheckin.created_at)
        )
        return list(result.scalars().all())

    async def get_checkin(self, user_id: str, on_date: date, time_of_day: str) -> Optional[MoodCheckin]:
        result = await self.db.execute(
            select(MoodCheckin).where(
                MoodCheckin.user_id == user_id,
                MoodCheckin.date == on_date,
                MoodCheckin.time_of_day == time_of_day,
            )
        )
        return result.scalar_one_or_none()

    async def create_checkin(
        self, user_id: str, mood: str, time_of_day: str, on_date: date, notes: Optional[str] = None
    ) -> MoodCheckin:
        checkin = MoodCheckin(
            user_id=user_id, mood=mood, time_of_day=time_of_day, notes=notes, date=on_date
        )
        self.db.add(checkin)
        await self.db.flush()
        await self.db.refresh(checkin)
        return checkin
