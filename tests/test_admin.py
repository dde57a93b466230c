"""
Tests for admin content management
"""
import pytest
from sqlalchemy import func, select

from database_models import DailyTask, ProfileContent
from tests.conftest import ADMIN_EMAIL, auth_headers

DAY_ONE = {"day_number": 1, "lean_message": "Start light", "micro_challenge": "Drink water before meals"}


@pytest.fixture
async def admin_headers(make_member):
    return auth_headers(await make_member(email=ADMIN_EMAIL))


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client, make_member):
    user_id = await make_member(email="member@example.com")

    response = await client.get("/api/admin/daily-content", headers=auth_headers(user_id))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_daily_content_lifecycle(client, admin_headers, session_factory):
    created = await client.post("/api/admin/daily-content", json=DAY_ONE, headers=admin_headers)
    assert created.status_code == 201
    content_id = created.json()["data"]["id"]

    duplicate = await client.post("/api/admin/daily-content", json=DAY_ONE, headers=admin_headers)
    assert duplicate.status_code == 409

    task = await client.post(
        f"/api/admin/daily-content/{content_id}/tasks",
        json={"task_text": "Eat a protein breakfast", "task_order": 1},
        headers=admin_headers,
    )
    assert task.status_code == 201

    variant = await client.put(
        f"/api/admin/daily-content/{content_id}/profiles/hormonal",
        json={"star_food_name": "Flaxseed", "allowed_foods": ["eggs"]},
        headers=admin_headers,
    )
    assert variant.status_code == 200

    detail = await client.get(f"/api/admin/daily-content/{content_id}", headers=admin_headers)
    data = detail.json()["data"]
    assert [t["task_text"] for t in data["tasks"]] == ["Eat a protein breakfast"]
    assert data["profile_content"]["hormonal"]["star_food_name"] == "Flaxseed"

    updated = await client.put(
        f"/api/admin/daily-content/{content_id}", json={"lean_message": "Start lighter"}, headers=admin_headers
    )
    assert updated.json()["data"]["lean_message"] == "Start lighter"
    assert updated.json()["data"]["day_number"] == 1

    deleted = await client.delete(f"/api/admin/daily-content/{content_id}", headers=admin_headers)
    assert deleted.status_code == 200
    missing = await client.get(f"/api/admin/daily-content/{content_id}", headers=admin_headers)
    assert missing.status_code == 404
    async with session_factory() as session:
        assert await session.scalar(select(func.count()).select_from(DailyTask)) == 0
        assert await session.scalar(select(func.count()).select_from(ProfileContent)) == 0


@pytest.mark.asyncio
async def test_moving_a_day_onto_an_existing_day_conflicts(client, admin_headers):
    await client.post("/api/admin/daily-content", json=DAY_ONE, headers=admin_headers)
    second = await client.post("/api/admin/daily-content", json={**DAY_ONE, "day_number": 2}, headers=admin_headers)

    response = await client.put(
        f"/api/admin/daily-content/{second.json()['data']['id']}", json={"day_number": 1}, headers=admin_headers
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_input_is_rejected(client, admin_headers):
    out_of_range = await client.post(
        "/api/admin/daily-content", json={**DAY_ONE, "day_number": 31}, headers=admin_headers
    )
    created = await client.post("/api/admin/daily-content", json=DAY_ONE, headers=admin_headers)
    bad_profile = await client.put(
        f"/api/admin/daily-content/{created.json()['data']['id']}/profiles/vampire",
        json={"star_food_name": "Garlic"},
        headers=admin_headers,
    )

    assert out_of_range.status_code == 422
    assert bad_profile.status_code == 400


@pytest.mark.asyncio
async def test_bonus_content_crud(client, admin_headers):
    created = await client.post(
        "/api/admin/bonus-content",
        json={"title": "Recipe book", "unlock_points": 40, "content_url": "https://cdn.example.com/recipes.pdf"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    bonus_id = created.json()["data"]["id"]

    updated = await client.put(
        f"/api/admin/bonus-content/{bonus_id}", json={"is_active": False}, headers=admin_headers
    )
    assert updated.json()["data"]["is_active"] is False
    assert updated.json()["data"]["unlock_points"] == 40

    listed = await client.get("/api/admin/bonus-content", headers=admin_headers)
    assert [b["id"] for b in listed.json()["data"]["bonus_content"]] == [bonus_id]

    deleted = await client.delete(f"/api/admin/bonus-content/{bonus_id}", headers=admin_headers)
    assert deleted.status_code == 200
    gone = await client.delete(f"/api/admin/bonus-content/{bonus_id}", headers=admin_headers)
    assert gone.status_code == 404
