"""Shapes of the JSON the LLM is asked to return for workout text and PDF plans."""

import datetime as dt

from pydantic import BaseModel, Field, field_validator

from fittrack.models.exercise import ExerciseType
from fittrack.models.workout_session import WorkoutCategory


class ParsedExerciseSet(BaseModel):
    set_number: int | None = None
    reps: int | None = None
    weight_kg: float | None = None


class ParsedExercise(BaseModel):
    exercise_name: str = Field(..., min_length=1)
    exercise_type: ExerciseType = ExerciseType.strength
    sets: int | None = None
    reps: int | None = None
    weight_kg: float | None = None
    exercise_sets: list[ParsedExerciseSet] | None = None
    distance_km: float | None = None
    time_minutes: float | None = None
    laps: int | None = None
    notes: str | None = None

    @field_validator("exercise_type", mode="before")
    @classmethod
    def _default_type(cls, v):
        # Models sometimes answer null, an unknown label or a capitalised one
        label = str(v).strip().lower() if v is not None else ""
        if label not in [e.value for e in ExerciseType]:
            return ExerciseType.strength.value
        return label

    @field_validator("sets", "reps", "laps", mode="before")
    @classmethod
    def _zero_is_missing(cls, v):
        return v or None


class ParsedWorkoutSession(BaseModel):
    category: WorkoutCategory | None = None
    duration_minutes: int | None = None
    notes: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, v):
        if isinstance(v, str) and v.strip().lower() in [c.value for c in WorkoutCategory]:
            return v.strip().lower()
        return None

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _round_duration(cls, v):
        return round(v) if isinstance(v, float) else v


class ParsedWorkout(BaseModel):
    """Reply for a free-text description: one session plus the exercises that validated."""

    workout_session: ParsedWorkoutSession
    exercises: list[ParsedExercise]
    skipped_exercises: int = 0


class ParsedPlanWorkout(BaseModel):
    """One entry of the array extracted from a PDF plan."""

    date: dt.date | None = None
    category: WorkoutCategory
    duration_minutes: int | None = None
    notes: str | None = None
    exercises: list[ParsedExercise] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def _lower_category(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _round_duration(cls, v):
        return round(v) if isinstance(v, float) else v

    @field_validator("date", mode="before")
    @classmethod
    def _lenient_date(cls, v):
        # Unusable dates fall back to the scheduled default instead of dropping the workout
        if not v:
            return None
        if isinstance(v, dt.date):
            return v
        try:
            return dt.date.fromisoformat(str(v).strip()[:10])
        except ValueError:
            return None


class ProcessWorkoutTextRequest(BaseModel):
    workout_text: str = Field(..., min_length=1)
    workout_date: dt.date
    category: str | None = None  # WorkoutCategory value, "auto" or empty = infer


class ProcessWorkoutTextResponse(BaseModel):
    success: bool = True
    message: str
    exercises_created: int
    workout_session_id: int
    parse_method: str


class ParsePlanResponse(BaseModel):
    success: bool = True
    message: str
    workouts_created: int
    exercises_created: int


class ConnectivityResult(BaseModel):
    success: bool
    provider: str
    api_key_present: bool
    message: str | None = None
    error: str | None = None


class DebugParseRequest(BaseModel):
    workout_text: str | None = None


class DebugParseResponse(BaseModel):
    raw_response: str
    parse_method: str | None
    parsed: dict | list | None
    error: str | None = None
