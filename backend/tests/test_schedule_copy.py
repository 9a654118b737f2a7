"""Tests for repeating a week's schedule over the following weeks."""

import pytest
from httpx import AsyncClient

from conftest import make_session_body, strength


async def _seed(client: AsyncClient, headers: dict) -> None:
    bodies = [
        make_session_body(
            "2026-03-02",
            [
                strength(
                    "Bench Press",
                    60,
                    exercise_sets=[
                        {"set_number": 1, "reps": 10, "weight_kg": 60},
                        {"set_number": 2, "reps": 8, "weight_kg": 65},
                    ],
                )
            ],
            duration_minutes=50,
            notes="Heavy",
        ),
        make_session_body("2026-03-06", [strength("Squat", 100)], category="legs"),
        make_session_body("2026-03-09", [strength("Deadlift", 140)], category="pull"),
    ]
    for body in bodies:
        assert (await client.post("/api/v1/sessions", json=body, headers=headers)).status_code == 201


@pytest.mark.asyncio
async def test_copy_week_repeats_sessions(client: AsyncClient, auth_headers: dict):
    await _seed(client, auth_headers)
    resp = await client.post(
        "/api/v1/sessions/copy-week", json={"week_start_date": "2026-03-01", "weeks": 2}, headers=auth_headers
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["sessions_created"] == 4
    assert sorted((s["date"], s["category"]) for s in data["sessions"]) == [
        ("2026-03-09", "push"),
        ("2026-03-13", "legs"),
        ("2026-03-16", "push"),
        ("2026-03-20", "legs"),
    ]
    bench = next(s for s in data["sessions"] if s["date"] == "2026-03-09")
    assert bench["duration_minutes"] == 50
    assert bench["notes"] == "Heavy"
    sets = bench["exercises"][0]["exercise_sets"]
    assert [(s["set_number"], s["reps"], s["weight_kg"]) for s in sets] == [(1, 10, 60), (2, 8, 65)]
    # Same weight as the source week
    assert bench["exercises"][0]["is_progressive"] is False

    listed = await client.get(
        "/api/v1/sessions", params={"from_date": "2026-03-01", "to_date": "2026-03-31"}, headers=auth_headers
    )
    assert listed.json()["total"] == 7


@pytest.mark.asyncio
async def test_copy_empty_week(client: AsyncClient, auth_headers: dict):
    resp = await client.post(
        "/api/v1/sessions/copy-week", json={"week_start_date": "2026-02-01"}, headers=auth_headers
    )
    assert resp.status_code == 201
    assert resp.json()["sessions_created"] == 0
    assert resp.json()["sessions"] == []


@pytest.mark.asyncio
async def test_copy_week_validates_weeks(client: AsyncClient, auth_headers: dict):
    resp = await client.post(
        "/api/v1/sessions/copy-week", json={"week_start_date": "2026-03-01", "weeks": 0}, headers=auth_headers
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_copy_week_only_copies_own_sessions(client: AsyncClient, auth_headers: dict, other_headers: dict):
    await _seed(client, other_headers)
    resp = await client.post(
        "/api/v1/sessions/copy-week", json={"week_start_date": "2026-03-01", "weeks": 1}, headers=auth_headers
    )
    assert resp.json()["sessions_created"] == 0
