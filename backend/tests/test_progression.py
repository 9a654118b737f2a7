"""Tests for progressive overload detection."""

import pytest
from httpx import AsyncClient

from conftest import make_session_body, strength
from fittrack.services.progression import compare_weights, normalize_exercise_name


def test_compare_weights():
    assert compare_weights(62.5, 60) == (True, 2.5)
    assert compare_weights(60, 60) == (False, None)
    assert compare_weights(55, 60) == (False, None)
    assert compare_weights(None, 60) == (False, None)
    assert compare_weights(60, None) == (False, None)


def test_normalize_exercise_name():
    assert normalize_exercise_name("  Bench Press ") == "bench press"
    assert normalize_exercise_name(None) == ""


async def _log(client: AsyncClient, headers: dict, day: str, *exercises: dict) -> dict:
    resp = await client.post("/api/v1/sessions", json=make_session_body(day, list(exercises)), headers=headers)
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_first_entry_is_not_progressive(client: AsyncClient, auth_headers: dict):
    ex = (await _log(client, auth_headers, "2026-03-02", strength("Bench Press", 60)))["exercises"][0]
    assert ex["is_progressive"] is False
    assert ex["previous_weight_kg"] is None
    assert ex["weight_improvement_kg"] is None


@pytest.mark.asyncio
async def test_heavier_than_previous_is_progressive(client: AsyncClient, auth_headers: dict):
    await _log(client, auth_headers, "2026-03-02", strength("Bench Press", 60))
    ex = (await _log(client, auth_headers, "2026-03-09", strength("bench press ", 62.5)))["exercises"][0]
    assert ex["is_progressive"] is True
    assert ex["previous_weight_kg"] == 60
    assert ex["weight_improvement_kg"] == 2.5


@pytest.mark.asyncio
async def test_same_or_lower_weight_not_progressive(client: AsyncClient, auth_headers: dict):
    await _log(client, auth_headers, "2026-03-02", strength("Squat", 100))
    same = (await _log(client, auth_headers, "2026-03-09", strength("Squat", 100)))["exercises"][0]
    assert same["is_progressive"] is False
    assert same["previous_weight_kg"] == 100
    assert same["weight_improvement_kg"] is None
    lower = (await _log(client, auth_headers, "2026-03-16", strength("Squat", 90)))["exercises"][0]
    assert lower["is_progressive"] is False
    assert lower["previous_weight_kg"] == 100


@pytest.mark.asyncio
async def test_compares_with_most_recent_prior_date(client: AsyncClient, auth_headers: dict):
    await _log(client, auth_headers, "2026-03-02", strength("Deadlift", 120))
    await _log(client, auth_headers, "2026-03-09", strength("Deadlift", 140))
    # Backfilled entry between the two compares against the earlier date only
    backfill = (await _log(client, auth_headers, "2026-03-05", strength("Deadlift", 130)))["exercises"][0]
    assert backfill["previous_weight_kg"] == 120
    assert backfill["weight_improvement_kg"] == 10


@pytest.mark.asyncio
async def test_other_users_history_ignored(client: AsyncClient, auth_headers: dict, other_headers: dict):
    await _log(client, other_headers, "2026-03-02", strength("Bench Press", 40))
    ex = (await _log(client, auth_headers, "2026-03-09", strength("Bench Press", 60)))["exercises"][0]
    assert ex["is_progressive"] is False
    assert ex["previous_weight_kg"] is None


@pytest.mark.asyncio
async def test_weight_update_recomputes(client: AsyncClient, auth_headers: dict):
    await _log(client, auth_headers, "2026-03-02", strength("Press", 40))
    ex = (await _log(client, auth_headers, "2026-03-09", strength("Press", 40)))["exercises"][0]
    assert ex["is_progressive"] is False
    resp = await client.patch(f"/api/v1/exercises/{ex['id']}", json={"weight_kg": 42.5}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["is_progressive"] is True
    assert resp.json()["weight_improvement_kg"] == 2.5
