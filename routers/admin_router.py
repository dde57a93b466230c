"""
Admin Router - program content management, restricted to ADMIN_EMAILS
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_admin
from backend.utils.responses import service_response
from database import get_db
from models.program import (
    BonusContentRequest,
    BonusContentUpdate,
    DailyContentRequest,
    DailyContentUpdate,
    DailyTaskRequest,
    ProfileContentRequest,
)
from services.admin_service import AdminService

admin_router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@admin_router.get("/daily-content")
async def list_daily_content(db: AsyncSession = Depends(get_db)):
    return service_response(await AdminService(db).list_daily_content())


@admin_router.post("/daily-content")
async def create_daily_content(request: DailyContentRequest, db: AsyncSession = Depends(get_db)):
    result = await AdminService(db).create_daily_content(request)
    return service_response(result, message="Daily content created", status=201)


@admin_router.get("/daily-content/{content_id}")
async def get_daily_content(content_id: int, db: AsyncSession = Depends(get_db)):
    """One day with its tasks and profile-specific content"""
    return service_response(await AdminService(db).get_daily_content(content_id))


@admin_router.put("/daily-content/{content_id}")
async def update_daily_content(
    content_id: int, request: DailyContentUpdate, db: AsyncSession = Depends(get_db)
):
    result = await AdminService(db).update_daily_content(content_id, request)
    return service_response(result, message="Daily content updated")


@admin_router.delete("/daily-content/{content_id}")
async def delete_daily_content(content_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a day together with its tasks and profile content"""
    result = await AdminService(db).delete_daily_content(content_id)
    return service_response(result, message="Daily content deleted")


@admin_router.post("/daily-content/{content_id}/tasks")
async def add_task(content_id: int, request: DailyTaskRequest, db: AsyncSession = Depends(get_db)):
    result = await AdminService(db).add_task(content_id, request)
    return service_response(result, message="Task created", status=201)


@admin_router.delete("/daily-content/{content_id}/tasks/{task_id}")
async def delete_task(content_id: int, task_id: int, db: AsyncSession = Depends(get_db)):
    result = await AdminService(db).delete_task(content_id, task_id)
    return service_response(result, message="Task deleted")


@admin_router.put("/daily-content/{content_id}/profiles/{profile_type}")
async def set_profile_content(
    content_id: int,
    profile_type: str,
    request: ProfileContentRequest,
    db: AsyncSession = Depends(get_db),
):
    result = await AdminService(db).set_profile_content(content_id, profile_type, request)
    return service_response(result, message="Profile content saved")


@admin_router.get("/bonus-content")
async def list_bonus_content(db: AsyncSession = Depends(get_db)):
    return service_response(await AdminService(db).list_bonus_content())


@admin_router.post("/bonus-content")
async def create_bonus_content(request: BonusContentRequest, db: AsyncSession = Depends(get_db)):
    result = await AdminService(db).create_bonus_content(request)
    return service_response(result, message="Bonus created", status=201)


@admin_router.put("/bonus-content/{bonus_id}")
async def update_bonus_content(
    bonus_id: int, request: BonusContentUpdate, db: AsyncSession = Depends(get_db)
):
    result = await AdminService(db).update_bonus_content(bonus_id, request)
    return service_response(result, message="Bonus updated")


@admin_router.delete("/bonus-content/{bonus_id}")
async def delete_bonus_content(bonus_id: int, db: AsyncSession = Depends(get_db)):
    result = await AdminService(db).delete_bonus_content(bonus_id)
    return service_response(result, message="Bonus deleted")
