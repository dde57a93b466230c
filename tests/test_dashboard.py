"""
Tests for the daily dashboard: content, checklist points and mood check-ins
"""
from datetime import timedelta

import pytest

from backend.program.rules import utcnow
from database_models import (
    BonusContent,
    DailyContent,
    DailyTask,
    ProfileContent,
    User,
    UserBonusUnlock,
    UserDailyProgress,
)
from tests.conftest import auth_headers


@pytest.fixture
def seed_day(session_factory):
    async def _seed(day_number: int = 1, task_count: int = 2):
        async with session_factory() as session:
            content = DailyContent(
                day_number=day_number,
                lean_message=f"Day {day_number}: small steps",
                micro_challenge="Walk 10 minutes after lunch",
            )
            session.add(content)
            await session.flush()
            tasks = [
                DailyTask(daily_content_id=content.id, task_text=f"Task {i}", task_order=i)
                for i in range(task_count)
            ]
            session.add_all(tasks)
            session.add(ProfileContent(
                daily_content_id=content.id,
                profile_type="hormonal",
                star_food_name="Flaxseed",
                allowed_foods=["eggs", "spinach"],
            ))
            await session.commit()
            return [t.id for t in tasks]

    return _seed


@pytest.mark.asyncio
async def test_dashboard_requires_completed_onboarding(client, make_member):
    user_id = await make_member(onboarded=False)

    response = await client.get("/api/dashboard", headers=auth_headers(user_id))

    assert response.status_code == 409
    assert response.json()["error"] == "onboarding_required"


@pytest.mark.asyncio
async def test_dashboard_shows_today(client, make_member, seed_day):
    user_id = await make_member(onboarded=True)
    await seed_day(1)

    response = await client.get("/api/dashboard", headers=auth_headers(user_id))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user"]["current_day"] == 1
    assert data["content"]["lean_message"] == "Day 1: small steps"
    assert [t["task_text"] for t in data["tasks"]] == ["Task 0", "Task 1"]
    assert data["profile_content"]["star_food_name"] == "Flaxseed"
    assert data["progress"]["tasks_total"] == 2
    assert data["progress"]["completion_percentage"] == 0
    assert data["checkins"] == []
    assert data["water_intake_liters"] == 2.8
    assert data["points_until_bonus"] == 40


@pytest.mark.asyncio
async def test_current_day_advances_with_the_calendar(client, make_member, session_factory):
    user_id = await make_member(onboarded=True, completed_at=utcnow() - timedelta(days=4))

    response = await client.get("/api/dashboard", headers=auth_headers(user_id))

    assert response.status_code == 200
    assert response.json()["data"]["user"]["current_day"] == 5
    assert response.json()["data"]["content"] is None
    async with session_factory() as session:
        user = await session.get(User, user_id)
    assert user.current_day == 5


@pytest.mark.asyncio
async def test_completing_every_task_earns_one_point(client, make_member, seed_day):
    user_id = await make_member(onboarded=True)
    first, second = await seed_day(1)
    headers = auth_headers(user_id)

    half = await client.post(f"/api/dashboard/tasks/{first}", json={"completed": True}, headers=headers)
    full = await client.post(f"/api/dashboard/tasks/{second}", json={"completed": True}, headers=headers)
    undo = await client.post(f"/api/dashboard/tasks/{second}", json={"completed": False}, headers=headers)
    redo = await client.post(f"/api/dashboard/tasks/{second}", json={"completed": True}, headers=headers)

    assert half.json()["data"]["progress"]["completion_percentage"] == 50
    assert half.json()["data"]["point_earned_now"] is False
    assert full.json()["data"]["progress"]["completion_percentage"] == 100
    assert full.json()["data"]["point_earned_now"] is True
    assert full.json()["data"]["slim_points"] == 1
    assert undo.json()["data"]["progress"]["completion_percentage"] == 50
    assert redo.json()["data"]["point_earned_now"] is False
    assert redo.json()["data"]["slim_points"] == 1


@pytest.mark.asyncio
async def test_point_needs_every_task_even_when_percentage_rounds_up(client, make_member, seed_day, session_factory):
    user_id = await make_member(onboarded=True)
    task_ids = await seed_day(1, task_count=200)
    async with session_factory() as session:
        session.add(UserDailyProgress(
            user_id=user_id,
            day_number=1,
            date=utcnow().date(),
            tasks_completed=task_ids[:198],
            tasks_total=200,
            completion_percentage=99,
        ))
        await session.commit()
    headers = auth_headers(user_id)

    almost = await client.post(f"/api/dashboard/tasks/{task_ids[198]}", json={"completed": True}, headers=headers)
    full = await client.post(f"/api/dashboard/tasks/{task_ids[199]}", json={"completed": True}, headers=headers)

    assert almost.status_code == 200
    assert len(almost.json()["data"]["progress"]["tasks_completed"]) == 199
    assert almost.json()["data"]["point_earned_now"] is False
    assert almost.json()["data"]["slim_points"] == 0
    assert full.json()["data"]["point_earned_now"] is True
    assert full.json()["data"]["slim_points"] == 1


@pytest.mark.asyncio
async def test_task_from_another_day_is_not_found(client, make_member, seed_day):
    user_id = await make_member(onboarded=True)
    await seed_day(1)
    other_day_tasks = await seed_day(2)

    response = await client.post(
        f"/api/dashboard/tasks/{other_day_tasks[0]}", json={"completed": True}, headers=auth_headers(user_id)
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_fortieth_point_unlocks_eligible_bonuses(client, make_member, seed_day, session_factory):
    user_id = await make_member(onboarded=True, slim_points=39)
    (task_id,) = await seed_day(1, task_count=1)
    async with session_factory() as session:
        eligible = BonusContent(title="Recipe book", unlock_points=40)
        too_expensive = BonusContent(title="Masterclass", unlock_points=100)
        inactive = BonusContent(title="Old guide", unlock_points=10, is_active=False)
        session.add_all([eligible, too_expensive, inactive])
        await session.commit()
        eligible_id = eligible.id

    response = await client.post(f"/api/dashboard/tasks/{task_id}", json={"completed": True}, headers=auth_headers(user_id))

    data = response.json()["data"]
    assert data["slim_points"] == 40
    assert data["bonus_unlocked"] is True
    assert data["unlocked_bonus_ids"] == [eligible_id]
    async with session_factory() as session:
        unlocks = (await session.execute(UserBonusUnlock.__table__.select())).all()
    assert len(unlocks) == 1


@pytest.mark.asyncio
async def test_one_mood_checkin_per_time_of_day(client, make_member):
    user_id = await make_member(onboarded=True)
    headers = auth_headers(user_id)

    morning = await client.post("/api/dashboard/mood", json={"mood": "happy", "time_of_day": "morning"}, headers=headers)
    again = await client.post("/api/dashboard/mood", json={"mood": "tired", "time_of_day": "morning"}, headers=headers)
    evening = await client.post(
        "/api/dashboard/mood", json={"mood": "tired", "time_of_day": "evening", "notes": "long day"}, headers=headers
    )

    assert morning.status_code == 201
    assert again.status_code == 409
    assert evening.status_code == 201
    assert evening.json()["data"]["checkin"]["notes"] == "long day"

    dashboard = await client.get("/api/dashboard", headers=headers)
    assert [c["time_of_day"] for c in dashboard.json()["data"]["checkins"]] == ["morning", "evening"]


@pytest.mark.asyncio
async def test_unknown_mood_is_rejected(client, make_member):
    user_id = await make_member(onboarded=True)

    response = await client.post(
        "/api/dashboard/mood", json={"mood": "ecstatic", "time_of_day": "morning"}, headers=auth_headers(user_id)
    )

    assert response.status_code == 422
