"""
Dashboard Service - today's program day, checklist, points and mood check-ins
"""

import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.program.rules import (
    calculate_current_day,
    calculate_water_intake,
    completion_percentage,
    points_until_bonus,
    utcnow,
)
from config.settings import BONUS_UNLOCK_THRESHOLD, POINTS_FOR_COMPLETION
from crud.onboarding import OnboardingRepository
from crud.program import ContentRepository, ProgressRepository
from crud.user import UserRepository
from database_models import User, UserDailyProgress
from models.program import MoodCheckinRequest
from services.reward_service import RewardService
from utils.serializers import row_to_dict

logger = logging.getLogger(__name__)

ONBOARDING_REQUIRED = {
    "error": "onboarding_required",
    "message": "Complete onboarding before opening the dashboard",
    "status": 409,
    "is_error": True,
}


class DashboardService:
    """Service class for the daily dashboard"""

    def __init__(self, db: AsyncSession, today: Optional[Callable[[], date]] = None):
        self.db = db
        self.today = today or (lambda: utcnow().date())
        self.users = UserRepository(db)
        self.onboarding = OnboardingRepository(db)
        self.content = ContentRepository(db)
        self.progress = ProgressRepository(db)
        self.rewards = RewardService(db)

    async def _sync_current_day(self, user: User, completed_at) -> int:
        day = calculate_current_day(completed_at, self.today())
        if day != user.current_day:
            logger.info(f"Advancing {user.id} from day {user.current_day} to day {day}")
            await self.users.update_user(user, {"current_day": day})
        return day

    async def _today_progress(self, user_id: str, day: int, tasks_total: int) -> UserDailyProgress:
        progress = await self.progress.get_progress(user_id, day)
        if progress is None:
            return await self.progress.create_progress(user_id, day, self.today(), tasks_total=tasks_total)
        if progress.tasks_total != tasks_total:
            progress = await self.progress.update_progress(progress, {"tasks_total": tasks_total})
        return progress

    async def get_dashboard(self, user: User):
        """
        Everything the dashboard renders for the user's current program day.

        Returns:
            Normalized response: {"data": {...}, "is_error": False} or an error dict
        """
        record = await self.onboarding.get_by_user_id(user.id)
        if not record or not record.onboarding_completed:
            return dict(ONBOARDING_REQUIRED)

        user_id = user.id
        try:
            day = await self._sync_current_day(user, record.completed_at)

            content = await self.content.get_content_for_day(day)
            tasks = await self.content.list_tasks(content.id) if content else []
            profile_content = None
            if content and user.profile_type:
                profile_content = await self.content.get_profile_content(content.id, user.profile_type)

            progress = await self._today_progress(user.id, day, len(tasks))
            checkins = await self.progress.list_checkins(user.id, self.today())
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to load dashboard for {user_id}: {e}", exc_info=True)
            return {"error": "dashboard_failed", "message": "Failed to load dashboard", "status": 500, "is_error": True}

        water = calculate_water_intake(record.current_weight_kg) if record.current_weight_kg else None
        return {
            "data": {
                "user": {
                    "id": user.id,
                    "email": user.email,
                    "full_name": user.full_name,
                    "profile_type": user.profile_type,
                    "current_day": day,
                    "slim_points": user.slim_points,
                    "bonus_unlocked": user.bonus_unlocked,
                },
                "content": row_to_dict(content),
                "tasks": [row_to_dict(task) for task in tasks],
                "profile_content": row_to_dict(profile_content),
                "progress": row_to_dict(progress),
                "checkins": [row_to_dict(c) for c in checkins],
                "water_intake_liters": water,
                "points_until_bonus": points_until_bonus(user.slim_points),
            },
            "is_error": False,
        }

    async def toggle_task(self, user: User, task_id: int, completed: bool):
        """
        Mark one of today's tasks done or not done.

        The first time every task of the day is done the user earns a point; crossing
        the bonus threshold unlocks every eligible bonus.

        Args:
            user: Authenticated user
            task_id: Task belonging to today's content
            completed: New state of the task

        Returns:
            Normalized response with updated progress and points
        """
        record = await self.onboarding.get_by_user_id(user.id)
        if not record or not record.onboarding_completed:
            return dict(ONBOARDING_REQUIRED)

        user_id = user.id
        try:
            day = await self._sync_current_day(user, record.completed_at)
            content = await self.content.get_content_for_day(day)
            tasks = await self.content.list_tasks(content.id) if content else []
            task_ids = [task.id for task in tasks]
            if task_id not in task_ids:
                return {
                    "error": "task_not_found",
                    "message": f"Task {task_id} is not part of day {day}",
                    "status": 404,
                    "is_error": True,
                }

            progress = await self._today_progress(user.id, day, len(tasks))
            done = [t for t in (progress.tasks_completed or []) if t in task_ids and t != task_id]
            if completed:
                done.append(task_id)

            percentage = completion_percentage(len(done), len(tasks))
            all_done = bool(tasks) and len(done) == len(tasks)
            earn_point = all_done and not progress.point_earned
            progress = await self.progress.update_progress(progress, {
                "tasks_completed": sorted(done),
                "completion_percentage": percentage,
                "point_earned": progress.point_earned or earn_point,
            })

            unlocked_ids = []
            if earn_point:
                points = user.slim_points + POINTS_FOR_COMPLETION
                updates = {"slim_points": points}
                if points >= BONUS_UNLOCK_THRESHOLD and not user.bonus_unlocked:
                    updates["bonus_unlocked"] = True
                    unlocked_ids = await self.rewards.unlock_eligible(user.id, points)
                await self.users.update_user(user, updates)
                logger.info(f"User {user_id} completed day {day}, points now {points}")

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update task {task_id} for {user_id}: {e}", exc_info=True)
            return {"error": "task_update_failed", "message": "Failed to update task", "status": 500, "is_error": True}

        return {
            "data": {
                "progress": row_to_dict(progress),
                "slim_points": user.slim_points,
                "bonus_unlocked": user.bonus_unlocked,
                "point_earned_now": earn_point,
                "unlocked_bonus_ids": unlocked_ids,
            },
            "is_error": False,
        }

    async def log_mood(self, user: User, checkin: MoodCheckinRequest):
        """
        Record a mood check-in; one per time of day per date.
        """
        today = self.today()
        existing = await self.progress.get_checkin(user.id, today, checkin.time_of_day)
        if existing is not None:
            return {
                "error": "mood_already_logged",
                "message": f"Mood already logged this {checkin.time_of_day}",
                "status": 409,
                "is_error": True,
            }

        user_id = user.id
        try:
            row = await self.progress.create_checkin(
                user.id, checkin.mood, checkin.time_of_day, today, notes=checkin.notes
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return {
                "error": "mood_already_logged",
                "message": f"Mood already logged this {checkin.time_of_day}",
                "status": 409,
                "is_error": True,
            }
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save mood for {user_id}: {e}", exc_info=True)
            return {"error": "mood_save_failed", "message": "Failed to save mood", "status": 500, "is_error": True}

        return {"data": {"checkin": row_to_dict(row)}, "is_error": False}
