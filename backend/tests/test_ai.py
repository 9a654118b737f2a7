"""Tests for AI endpoints with Gemini mocked at the reply-text level."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi import HTTPException
from httpx import AsyncClient

from fittrack.config import settings

GENERATE = "fittrack.services.gemini_workout_parser.generate_raw"

REPLY = {
    "workout_session": {"category": "push", "duration_minutes": None, "notes": "Chest day"},
    "exercises": [
        {
            "exercise_name": "Bench Press",
            "exercise_type": "strength",
            "sets": 2,
            "reps": None,
            "weight_kg": 60,
            "exercise_sets": [
                {"set_number": 1, "reps": 10, "weight_kg": 60},
                {"set_number": 2, "reps": 8, "weight_kg": 65},
            ],
        },
        {"exercise_name": "Treadmill", "exercise_type": "cardio", "distance_km": 2.0, "time_minutes": 15},
    ],
}


def _post_text(client: AsyncClient, headers: dict, **overrides):
    body = {"workout_text": "bench 60x10, 65x8, then 15 min treadmill", "workout_date": "2026-03-02", **overrides}
    return client.post("/api/v1/ai/process-workout-text", json=body, headers=headers)


@pytest.mark.asyncio
async def test_process_workout_text_creates_session(client: AsyncClient, auth_headers: dict):
    raw = f"Here is the workout:\n```json\n{json.dumps(REPLY)}\n```"
    with patch(GENERATE, new=AsyncMock(return_value=raw)) as gen:
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["exercises_created"] == 2
    assert data["parse_method"] == "markdown"
    assert "bench 60x10" in gen.await_args.args[0]

    session = (await client.get(f"/api/v1/sessions/{data['workout_session_id']}", headers=auth_headers)).json()
    assert session["category"] == "push"
    assert session["duration_minutes"] == settings.default_session_duration_minutes
    bench, treadmill = session["exercises"]
    assert [s["weight_kg"] for s in bench["exercise_sets"]] == [60, 65]
    assert treadmill["exercise_type"] == "cardio"
    assert treadmill["distance_km"] == 2.0


@pytest.mark.asyncio
async def test_category_hint_used_when_reply_has_none(client: AsyncClient, auth_headers: dict):
    reply = {**REPLY, "workout_session": {"category": "stretching", "duration_minutes": 45}}
    with patch(GENERATE, new=AsyncMock(return_value=json.dumps(reply))):
        resp = await _post_text(client, auth_headers, category="legs")
    assert resp.status_code == 200
    assert resp.json()["parse_method"] == "direct"
    session = (await client.get(f"/api/v1/sessions/{resp.json()['workout_session_id']}", headers=auth_headers)).json()
    assert session["category"] == "legs"
    assert session["duration_minutes"] == 45


@pytest.mark.asyncio
async def test_no_category_with_auto_hint_is_422(client: AsyncClient, auth_headers: dict):
    reply = {**REPLY, "workout_session": {"category": None}}
    with patch(GENERATE, new=AsyncMock(return_value=json.dumps(reply))):
        resp = await _post_text(client, auth_headers, category="auto")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_unparseable_reply_is_422(client: AsyncClient, auth_headers: dict):
    with patch(GENERATE, new=AsyncMock(return_value="Sorry, I can't help with that.")):
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 422
    assert resp.json()["detail"] == "AI parsing failed: add manually"
    sessions = await client.get("/api/v1/sessions", params={"from_date": "2026-03-01", "to_date": "2026-03-31"}, headers=auth_headers)
    assert sessions.json()["total"] == 0


@pytest.mark.asyncio
async def test_wrong_structure_is_422(client: AsyncClient, auth_headers: dict):
    with patch(GENERATE, new=AsyncMock(return_value='{"exercises": "none"}')):
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_missing_api_key_is_503(client: AsyncClient, auth_headers: dict):
    with patch.object(settings, "google_gemini_api_key", ""):
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_upstream_error_is_502(client: AsyncClient, auth_headers: dict):
    with patch(GENERATE, new=AsyncMock(side_effect=RuntimeError("500 Internal error"))):
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 502


@pytest.mark.asyncio
async def test_daily_ai_limit(client: AsyncClient, auth_headers: dict):
    limited = AsyncMock(side_effect=HTTPException(status_code=429, detail="limit", headers={"Retry-After": "60"}))
    with patch("fittrack.api.deps.check_and_consume_ai_limit", new=limited), patch(GENERATE, new=AsyncMock()) as gen:
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "60"
    gen.assert_not_awaited()


@pytest.mark.asyncio
async def test_connectivity_missing_key_still_200(client: AsyncClient, auth_headers: dict):
    with patch.object(settings, "openai_api_key", ""):
        resp = await client.get("/api/v1/ai/test/openai", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert resp.json()["api_key_present"] is False


@pytest.mark.asyncio
async def test_connectivity_aiml_ok(client: AsyncClient, auth_headers: dict):
    http = MagicMock()
    http.post = AsyncMock(
        return_value=httpx.Response(200, json={"choices": [{"message": {"content": '{"status": "success"}'}}]})
    )
    with patch.object(settings, "aiml_api_key", "k"), patch(
        "fittrack.services.llm_connectivity.get_http_client", return_value=http
    ):
        resp = await client.get("/api/v1/ai/test/aiml", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert http.post.await_args.args[0] == f"{settings.aiml_base_url}/chat/completions"


@pytest.mark.asyncio
async def test_connectivity_provider_error_still_200(client: AsyncClient, auth_headers: dict):
    http = MagicMock()
    http.post = AsyncMock(return_value=httpx.Response(401, text="bad key"))
    with patch.object(settings, "openai_api_key", "k"), patch(
        "fittrack.services.llm_connectivity.get_http_client", return_value=http
    ):
        resp = await client.get("/api/v1/ai/test/openai", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert "401" in resp.json()["error"]


@pytest.mark.asyncio
async def test_connectivity_gemini(client: AsyncClient, auth_headers: dict):
    with patch("fittrack.services.llm_connectivity.generate_raw", new=AsyncMock(return_value='{"status": "success"}')):
        resp = await client.get("/api/v1/ai/test/gemini", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is True


@pytest.mark.asyncio
async def test_connectivity_unknown_provider(client: AsyncClient, auth_headers: dict):
    resp = await client.get("/api/v1/ai/test/claude", headers=auth_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_debug_gemini_reports_method(client: AsyncClient, auth_headers: dict):
    with patch(GENERATE, new=AsyncMock(return_value=f"Sure! {json.dumps(REPLY)} Hope it helps")):
        resp = await client.post("/api/v1/ai/debug/gemini", json={}, headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["parse_method"] == "regex"
    assert data["parsed"]["workout_session"]["category"] == "push"
    assert data["error"] is None


@pytest.mark.asyncio
async def test_debug_gemini_reports_failure(client: AsyncClient, auth_headers: dict):
    with patch(GENERATE, new=AsyncMock(return_value="no json here")):
        resp = await client.post("/api/v1/ai/debug/gemini", json={"workout_text": "ran 5k"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["parse_method"] is None
    assert resp.json()["error"] == "All parsing strategies failed"


@pytest.mark.asyncio
async def test_capitalised_cardio_type_drops_set_weights(client: AsyncClient, auth_headers: dict):
    reply = {
        "workout_session": {"category": "cardio"},
        "exercises": [
            {
                "exercise_name": "Rower",
                "exercise_type": " Cardio",
                "exercise_sets": [{"set_number": 1, "reps": 1, "weight_kg": 5}],
            }
        ],
    }
    with patch(GENERATE, new=AsyncMock(return_value=json.dumps(reply))):
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 200
    session = (await client.get(f"/api/v1/sessions/{resp.json()['workout_session_id']}", headers=auth_headers)).json()
    rower = session["exercises"][0]
    assert rower["exercise_type"] == "cardio"
    assert [s["weight_kg"] for s in rower["exercise_sets"]] == [None]


@pytest.mark.asyncio
async def test_invalid_exercises_are_skipped(client: AsyncClient, auth_headers: dict):
    reply = {
        "workout_session": {"category": "push"},
        "exercises": [
            {"exercise_name": "Bench Press", "sets": 3, "reps": 10, "weight_kg": 60},
            {"exercise_name": None, "sets": 3},
            {"exercise_name": "Dips", "sets": 2.5},
        ],
    }
    with patch(GENERATE, new=AsyncMock(return_value=json.dumps(reply))):
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["exercises_created"] == 1
    assert "2 could not be read" in data["message"]
    session = (await client.get(f"/api/v1/sessions/{data['workout_session_id']}", headers=auth_headers)).json()
    assert [e["exercise_name"] for e in session["exercises"]] == ["Bench Press"]


@pytest.mark.asyncio
async def test_no_valid_exercises_is_422(client: AsyncClient, auth_headers: dict):
    reply = {"workout_session": {"category": "push"}, "exercises": [{"exercise_name": ""}]}
    with patch(GENERATE, new=AsyncMock(return_value=json.dumps(reply))):
        resp = await _post_text(client, auth_headers)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_debug_gemini_counts_against_daily_limit(client: AsyncClient, auth_headers: dict):
    limited = AsyncMock(side_effect=HTTPException(status_code=429, detail="limit", headers={"Retry-After": "60"}))
    with patch("fittrack.api.deps.check_and_consume_ai_limit", new=limited), patch(GENERATE, new=AsyncMock()) as gen:
        resp = await client.post("/api/v1/ai/debug/gemini", json={}, headers=auth_headers)
    assert resp.status_code == 429
    gen.assert_not_awaited()
