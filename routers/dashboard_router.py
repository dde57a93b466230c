"""
Dashboard Router - daily checklist, points and mood check-ins
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user
from backend.utils.responses import service_response
from database import get_db
from database_models import User
from models.program import MoodCheckinRequest, TaskToggleRequest
from services.dashboard_service import DashboardService

dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@dashboard_router.get("")
async def get_dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await DashboardService(db).get_dashboard(user)
    return service_response(result)


@dashboard_router.post("/tasks/{task_id}")
async def toggle_task(
    task_id: int,
    request: TaskToggleRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Check or uncheck one of today's tasks"""
    result = await DashboardService(db).toggle_task(user, task_id, request.completed)
    return service_response(result, message="Task updated")


@dashboard_router.post("/mood")
async def log_mood(
    request: MoodCheckinRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await DashboardService(db).log_mood(user, request)
    return service_response(result, message="Mood saved", status=201)
