"""Tests for workout session, exercise and set endpoints."""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from conftest import make_session_body, strength
from fittrack.db.session import async_session_maker
from fittrack.models.exercise import Exercise, ExerciseSet


async def _count(model) -> int:
    async with async_session_maker() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar()


@pytest.mark.asyncio
async def test_create_session_with_n_exercises(client: AsyncClient, auth_headers: dict):
    body = make_session_body(
        "2026-03-02",
        [
            strength("Bench Press", 60),
            strength("Incline Press", 40),
            {"exercise_name": "Treadmill", "exercise_type": "cardio", "distance_km": 3.5, "time_minutes": 20},
        ],
        duration_minutes=75,
        notes="Felt strong",
    )
    resp = await client.post("/api/v1/sessions", json=body, headers=auth_headers)
    assert resp.status_code == 201
    data = resp.json()
    assert data["date"] == "2026-03-02"
    assert data["category"] == "push"
    assert data["duration_minutes"] == 75
    assert [e["exercise_name"] for e in data["exercises"]] == ["Bench Press", "Incline Press", "Treadmill"]
    assert await _count(Exercise) == 3


@pytest.mark.asyncio
async def test_create_session_requires_exercises(client: AsyncClient, auth_headers: dict):
    resp = await client.post("/api/v1/sessions", json=make_session_body("2026-03-02", []), headers=auth_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_session_rejects_unknown_category(client: AsyncClient, auth_headers: dict):
    body = make_session_body("2026-03-02", [strength("Squat", 100)], category="yoga")
    resp = await client.post("/api/v1/sessions", json=body, headers=auth_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_per_set_details_and_cardio_weights_nulled(client: AsyncClient, auth_headers: dict):
    sets = [
        {"set_number": 1, "reps": 15, "weight_kg": 10},
        {"set_number": 2, "reps": 12, "weight_kg": 15},
    ]
    body = make_session_body(
        "2026-03-03",
        [
            strength("Curl", sets=2, reps=None, exercise_sets=sets),
            {"exercise_name": "Rower", "exercise_type": "cardio", "exercise_sets": [{"set_number": 1, "reps": 1, "weight_kg": 30}]},
        ],
        category="pull",
    )
    resp = await client.post("/api/v1/sessions", json=body, headers=auth_headers)
    assert resp.status_code == 201
    curl, rower = resp.json()["exercises"]
    assert [(s["set_number"], s["reps"], s["weight_kg"]) for s in curl["exercise_sets"]] == [(1, 15, 10), (2, 12, 15)]
    assert rower["exercise_sets"][0]["weight_kg"] is None


@pytest.mark.asyncio
async def test_list_sessions_in_range(client: AsyncClient, auth_headers: dict):
    for day in ("2026-03-01", "2026-03-05", "2026-04-01"):
        await client.post("/api/v1/sessions", json=make_session_body(day, [strength("Squat", 80)]), headers=auth_headers)
    resp = await client.get(
        "/api/v1/sessions", params={"from_date": "2026-03-01", "to_date": "2026-03-31"}, headers=auth_headers
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 2
    assert [s["date"] for s in data["items"]] == ["2026-03-01", "2026-03-05"]
    assert data["has_more"] is False


@pytest.mark.asyncio
async def test_sessions_are_private(client: AsyncClient, auth_headers: dict, other_headers: dict):
    created = await client.post(
        "/api/v1/sessions", json=make_session_body("2026-03-02", [strength("Squat", 80)]), headers=auth_headers
    )
    sid = created.json()["id"]
    assert (await client.get(f"/api/v1/sessions/{sid}", headers=other_headers)).status_code == 404
    assert (await client.delete(f"/api/v1/sessions/{sid}", headers=other_headers)).status_code == 404
    assert (await client.get(f"/api/v1/sessions/{sid}", headers=auth_headers)).status_code == 200


@pytest.mark.asyncio
async def test_update_session(client: AsyncClient, auth_headers: dict):
    created = await client.post(
        "/api/v1/sessions", json=make_session_body("2026-03-02", [strength("Squat", 80)]), headers=auth_headers
    )
    sid = created.json()["id"]
    resp = await client.patch(
        f"/api/v1/sessions/{sid}", json={"category": "legs", "notes": "moved"}, headers=auth_headers
    )
    assert resp.status_code == 200
    assert resp.json()["category"] == "legs"
    assert resp.json()["notes"] == "moved"
    assert len(resp.json()["exercises"]) == 1


@pytest.mark.asyncio
async def test_delete_session_cascades(client: AsyncClient, auth_headers: dict):
    body = make_session_body(
        "2026-03-02",
        [strength("Bench", 60, exercise_sets=[{"set_number": 1, "reps": 10, "weight_kg": 60}]), strength("Dip", None)],
    )
    created = await client.post("/api/v1/sessions", json=body, headers=auth_headers)
    sid = created.json()["id"]
    assert await _count(Exercise) == 2
    assert await _count(ExerciseSet) == 1

    resp = await client.delete(f"/api/v1/sessions/{sid}", headers=auth_headers)
    assert resp.status_code == 204
    assert await _count(Exercise) == 0
    assert await _count(ExerciseSet) == 0
    assert (await client.get(f"/api/v1/sessions/{sid}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_add_update_delete_exercise(client: AsyncClient, auth_headers: dict):
    created = await client.post(
        "/api/v1/sessions", json=make_session_body("2026-03-02", [strength("Squat", 80)]), headers=auth_headers
    )
    sid = created.json()["id"]

    added = await client.post(f"/api/v1/sessions/{sid}/exercises", json=strength("Lunge", 20), headers=auth_headers)
    assert added.status_code == 201
    eid = added.json()["id"]
    assert added.json()["workout_session_id"] == sid

    updated = await client.patch(f"/api/v1/exercises/{eid}", json={"reps": 12}, headers=auth_headers)
    assert updated.status_code == 200
    assert updated.json()["reps"] == 12
    assert updated.json()["weight_kg"] == 20

    deleted = await client.delete(f"/api/v1/exercises/{eid}", headers=auth_headers)
    assert deleted.status_code == 204
    session = await client.get(f"/api/v1/sessions/{sid}", headers=auth_headers)
    assert [e["exercise_name"] for e in session.json()["exercises"]] == ["Squat"]


@pytest.mark.asyncio
async def test_delete_exercise_cascades_to_its_sets(client: AsyncClient, auth_headers: dict):
    body = make_session_body(
        "2026-03-02",
        [
            strength(
                "Bench Press",
                60,
                exercise_sets=[
                    {"set_number": 1, "reps": 10, "weight_kg": 60},
                    {"set_number": 2, "reps": 8, "weight_kg": 65},
                ],
            ),
            strength("Incline Press", 40, exercise_sets=[{"set_number": 1, "reps": 12, "weight_kg": 40}]),
        ],
    )
    created = (await client.post("/api/v1/sessions", json=body, headers=auth_headers)).json()
    bench, incline = created["exercises"]
    assert await _count(ExerciseSet) == 3

    resp = await client.delete(f"/api/v1/exercises/{bench['id']}", headers=auth_headers)
    assert resp.status_code == 204
    assert await _count(Exercise) == 1
    assert await _count(ExerciseSet) == 1
    remaining = await client.get(f"/api/v1/exercises/{incline['id']}/sets", headers=auth_headers)
    assert [(s["set_number"], s["reps"]) for s in remaining.json()] == [(1, 12)]


@pytest.mark.asyncio
async def test_replace_sets(client: AsyncClient, auth_headers: dict):
    body = make_session_body(
        "2026-03-02", [strength("Row", 50, exercise_sets=[{"set_number": 1, "reps": 8, "weight_kg": 50}])], category="pull"
    )
    created = await client.post("/api/v1/sessions", json=body, headers=auth_headers)
    eid = created.json()["exercises"][0]["id"]

    new_sets = [{"set_number": n, "reps": 10 - n, "weight_kg": 50 + 5 * n} for n in (1, 2, 3)]
    resp = await client.put(f"/api/v1/exercises/{eid}/sets", json={"sets": new_sets}, headers=auth_headers)
    assert resp.status_code == 200
    assert [s["set_number"] for s in resp.json()] == [1, 2, 3]

    listed = await client.get(f"/api/v1/exercises/{eid}/sets", headers=auth_headers)
    assert [s["weight_kg"] for s in listed.json()] == [55, 60, 65]
    assert await _count(ExerciseSet) == 3


@pytest.mark.asyncio
async def test_exercise_of_other_user_is_404(client: AsyncClient, auth_headers: dict, other_headers: dict):
    created = await client.post(
        "/api/v1/sessions", json=make_session_body("2026-03-02", [strength("Squat", 80)]), headers=auth_headers
    )
    eid = created.json()["exercises"][0]["id"]
    assert (await client.patch(f"/api/v1/exercises/{eid}", json={"reps": 1}, headers=other_headers)).status_code == 404
    assert (await client.get(f"/api/v1/exercises/{eid}/sets", headers=other_headers)).status_code == 404


@pytest.mark.asyncio
async def test_stats(client: AsyncClient, auth_headers: dict):
    today = date.today()
    await client.post(
        "/api/v1/sessions",
        json=make_session_body(today.isoformat(), [strength("Squat", 80, sets=4), strength("Lunge", 20, sets=3)]),
        headers=auth_headers,
    )
    await client.post(
        "/api/v1/sessions",
        json=make_session_body((today - timedelta(days=30)).isoformat(), [strength("Squat", 70, sets=None)]),
        headers=auth_headers,
    )
    resp = await client.get("/api/v1/sessions/stats", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {"total_workouts": 2, "this_week_workouts": 1, "total_sets": 7}


@pytest.mark.asyncio
async def test_unknown_plan_rejected(client: AsyncClient, auth_headers: dict):
    body = make_session_body("2026-03-02", [strength("Squat", 80)], workout_plan_id=9999)
    resp = await client.post("/api/v1/sessions", json=body, headers=auth_headers)
    assert resp.status_code == 404
