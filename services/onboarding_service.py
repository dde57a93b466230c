"""
Onboarding Service - intake wizard status and completion
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.program.rules import calculate_bmi, utcnow
from crud.onboarding import OnboardingRepository
from crud.program import ProgressRepository
from crud.user import UserRepository
from database_models import User
from models.onboarding import OnboardingSubmission
from utils.serializers import row_to_dict

logger = logging.getLogger(__name__)


class OnboardingService:
    """Service class for the five-step onboarding wizard"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.onboarding = OnboardingRepository(db)
        self.progress = ProgressRepository(db)
        self.users = UserRepository(db)

    async def get_status(self, user: User):
        """
        Current onboarding record for a user.

        Returns:
            Normalized response with the record and its completion flag
        """
        record = await self.onboarding.get_by_user_id(user.id)
        return {
            "data": {
                "onboarding_completed": bool(record and record.onboarding_completed),
                "onboarding": row_to_dict(record),
                "profile_type": user.profile_type,
            },
            "is_error": False,
        }

    async def complete(self, user: User, submission: OnboardingSubmission):
        """
        Save all wizard answers and mark onboarding complete.

        Computes BMI, keeps the original completion time when the wizard is
        re-submitted, switches the profile type to the one the user chose,
        and opens day-1 progress if it does not exist yet.

        Args:
            user: Authenticated user
            submission: Answers for steps 1-5

        Returns:
            Normalized response: {"data": {...}, "is_error": False} or an error dict
        """
        biometrics = submission.step2
        user_id = user.id
        try:
            existing = await self.onboarding.get_by_user_id(user.id)
            first_completion = not (existing and existing.onboarding_completed)
            completed_at = utcnow() if first_completion else existing.completed_at

            record = await self.onboarding.upsert(user.id, {
                "age": biometrics.age,
                "height_cm": biometrics.height_cm,
                "current_weight_kg": biometrics.current_weight_kg,
                "target_weight_kg": biometrics.target_weight_kg,
                "bmi": calculate_bmi(biometrics.current_weight_kg, biometrics.height_cm),
                "medications": list(submission.step3.medications),
                "physical_limitations": list(submission.step3.physical_limitations),
                "dietary_restrictions": list(submission.step4.dietary_restrictions),
                "diet_history": submission.step5.diet_history,
                "onboarding_completed": True,
                "completed_at": completed_at,
            })

            user_updates = {"profile_type": submission.step1.profile_type}
            if first_completion:
                user_updates["current_day"] = 1
            await self.users.update_user(user, user_updates)

            if await self.progress.get_progress(user.id, 1) is None:
                await self.progress.create_progress(user.id, 1, completed_at.date())

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save onboarding for {user_id}: {e}", exc_info=True)
            return {
                "error": "onboarding_save_failed",
                "message": "Failed to save your information. Please try again.",
                "status": 500,
                "is_error": True,
            }

        logger.info(f"Onboarding completed for {user_id} (bmi={record.bmi})")
        return {
            "data": {"onboarding_completed": True, "onboarding": row_to_dict(record)},
            "is_error": False,
        }
