"""
Onboarding Router - five-step intake wizard
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from backend.utils.responses import service_response
from database import get_db
from database_models import User
from models.onboarding import OnboardingSubmission
from services.onboarding_service import OnboardingService

logger = logging.getLogger(__name__)

onboarding_router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])


@onboarding_router.get("")
async def get_onboarding(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current onboarding answers and whether the wizard is finished"""
    result = await OnboardingService(db).get_status(user)
    return service_response(result)


@onboarding_router.post("/complete")
async def complete_onboarding(
    submission: OnboardingSubmission,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Submit all wizard steps at once.

    Returns:
        The saved onboarding record, including the computed BMI
    """
    result = await OnboardingService(db).complete(user, submission)
    return service_response(result, message="Onboarding completed")
