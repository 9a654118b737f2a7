"""
Gemini-based extraction of workouts from free text and from PDF plans.

The model is asked for JSON only, but replies are still run through
salvage_json() because markdown fences and chatty prefixes do occur.
"""
from __future__ import annotations

import logging

import google.generativeai as genai
from google.generativeai.types import HarmBlockThreshold, HarmCategory
from pydantic import ValidationError

from fittrack.config import settings
from fittrack.schemas.parsing import ParsedExercise, ParsedWorkout, ParsedWorkoutSession
from fittrack.services.gemini_common import response_text, run_generate_content
from fittrack.services.llm_json import salvage_json

logger = logging.getLogger(__name__)

TEXT_GENERATION_CONFIG = {
    "temperature": 0.1,
    "max_output_tokens": 2000,
}

PLAN_GENERATION_CONFIG = {
    "temperature": 0.1,
    "max_output_tokens": 4000,
}

SAFETY_SETTINGS = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
}

WORKOUT_TEXT_PROMPT = """You are a fitness expert that analyzes workout descriptions. Extract the workout and return it as a JSON object with this structure:
{
  "workout_session": {
    "category": "push|pull|legs|abs|cardio|treadmill",
    "duration_minutes": number,
    "notes": "string"
  },
  "exercises": [
    {
      "exercise_name": "string",
      "exercise_type": "strength|cardio",
      "sets": number,
      "reps": number,
      "weight_kg": number,
      "exercise_sets": [{"set_number": number, "reps": number, "weight_kg": number}],
      "distance_km": number,
      "time_minutes": number,
      "laps": number,
      "notes": "string"
    }
  ]
}

Rules:
- Infer the workout category from the exercises if no hint is given.
- Extract sets, reps, weights, distances and times from the text. Use null for missing values.
- Accept any notation ("3x12", "3 sets of 12", "12/10/8").
- When weight or reps differ between sets (e.g. "10kg for 15 reps, then 15kg for 12 reps") fill exercise_sets, numbered from 1.
- When every set is the same, use sets, reps and weight_kg only.
- Estimate duration_minutes if it is not stated.
- Return ONLY valid JSON, no other text."""

PLAN_PROMPT = """You are a fitness expert that analyzes workout plans from PDFs. Extract every workout and return a JSON array. Each element has:
- date (YYYY-MM-DD; if the plan has no dates, schedule consecutive days starting next Monday)
- category (one of "push", "pull", "legs", "abs", "cardio", "treadmill")
- duration_minutes (estimate if not specified)
- notes (any additional notes for the workout)
- exercises (array of objects with exercise_name, exercise_type ("strength" or "cardio"), sets, reps, weight_kg, distance_km, time_minutes, laps, notes)

Build a realistic weekly schedule from the plan. Return ONLY the JSON array, no other text."""

DEBUG_SAMPLE_TEXT = """Today I did:
- 3 sets of 12 push-ups
- 4 sets of 10 squats with 20kg
- 30 minutes cardio on treadmill
- 3 sets of 15 bicep curls with 15kg dumbbells
- Plank hold for 2 minutes"""


class GeminiNotConfiguredError(RuntimeError):
    """GOOGLE_GEMINI_API_KEY is not set."""


def _model(generation_config: dict):
    if not settings.google_gemini_api_key:
        raise GeminiNotConfiguredError("Gemini API key not configured")
    return genai.GenerativeModel(
        settings.gemini_model,
        generation_config=generation_config,
        safety_settings=SAFETY_SETTINGS,
    )


def build_text_prompt(workout_text: str, category_hint: str | None = None) -> str:
    prompt = f'{WORKOUT_TEXT_PROMPT}\n\nParse this workout description: "{workout_text}"'
    if category_hint and category_hint != "auto":
        prompt += f"\nCategory hint: {category_hint}"
    return prompt


async def generate_raw(prompt: str, *, parts: list | None = None, generation_config: dict | None = None) -> str:
    """Send prompt (plus optional inline parts) and return the reply text."""
    model = _model(generation_config or TEXT_GENERATION_CONFIG)
    contents = [prompt, *(parts or [])]
    logger.info("gemini: request model=%s prompt_chars=%d parts=%d", settings.gemini_model, len(prompt), len(parts or []))
    response = await run_generate_content(model, contents)
    text = response_text(response)
    logger.debug("gemini: reply preview %r", text[:300])
    return text


async def parse_workout_text(workout_text: str, category_hint: str | None = None) -> tuple[ParsedWorkout, str]:
    """
    Extract one workout session from a free-text description.
    Returns (parsed workout, salvage method). Raises ValueError when the reply is unusable.
    """
    logger.info("gemini: parsing workout text preview=%r", workout_text[:100])
    raw = await generate_raw(build_text_prompt(workout_text, category_hint))
    data, method = salvage_json(raw, shape="object")
    if not isinstance(data, dict) or not isinstance(data.get("workout_session"), dict) or not isinstance(
        data.get("exercises"), list
    ):
        raise ValueError("Invalid workout data structure received from AI")
    try:
        workout_session = ParsedWorkoutSession.model_validate(data["workout_session"])
    except ValidationError as e:
        raise ValueError(f"Invalid workout data received from AI: {e.error_count()} errors") from e
    exercises: list[ParsedExercise] = []
    for idx, item in enumerate(data["exercises"]):
        try:
            exercises.append(ParsedExercise.model_validate(item))
        except ValidationError as e:
            logger.warning("gemini: skipping exercise %d: %s", idx, e.errors()[:1])
    if not exercises:
        raise ValueError("No valid exercises received from AI")
    parsed = ParsedWorkout(
        workout_session=workout_session,
        exercises=exercises,
        skipped_exercises=len(data["exercises"]) - len(exercises),
    )
    logger.info(
        "gemini: workout parsed method=%s category=%s exercises=%d skipped=%d",
        method,
        parsed.workout_session.category,
        len(parsed.exercises),
        parsed.skipped_exercises,
    )
    return parsed, method


async def parse_workout_plan_pdf(pdf_bytes: bytes) -> tuple[list, str]:
    """Extract the workouts of a PDF plan. Returns (raw items, salvage method); items are validated by the caller."""
    part = {"mime_type": "application/pdf", "data": pdf_bytes}
    raw = await generate_raw(PLAN_PROMPT, parts=[part], generation_config=PLAN_GENERATION_CONFIG)
    data, method = salvage_json(raw, shape="array")
    if isinstance(data, dict):
        # Some replies wrap the array: {"workouts": [...]}
        data = next((v for v in data.values() if isinstance(v, list)), None)
    if not isinstance(data, list):
        raise ValueError("Expected a JSON array of workouts")
    logger.info("gemini: plan parsed method=%s items=%d", method, len(data))
    return data, method


async def debug_parse(workout_text: str | None = None) -> dict:
    """Run the text prompt and report the raw reply and salvage outcome without persisting anything."""
    raw = await generate_raw(build_text_prompt(workout_text or DEBUG_SAMPLE_TEXT))
    try:
        parsed, method = salvage_json(raw, shape="object")
    except ValueError as e:
        return {"raw_response": raw, "parse_method": None, "parsed": None, "error": str(e)}
    return {"raw_response": raw, "parse_method": method, "parsed": parsed, "error": None}
