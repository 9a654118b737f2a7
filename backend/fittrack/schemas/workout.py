"""Pydantic schemas for workout sessions, exercises and sets."""

import datetime as dt

from pydantic import BaseModel, Field

from fittrack.models.exercise import ExerciseType
from fittrack.models.workout_session import WorkoutCategory


class ExerciseSetIn(BaseModel):
    set_number: int = Field(..., ge=1)
    reps: int = Field(..., ge=0)
    weight_kg: float | None = Field(None, ge=0)


class ExerciseCreate(BaseModel):
    """One exercise as entered in the add-workout dialog (or produced by the AI parser)."""

    exercise_name: str = Field(..., min_length=1, max_length=255)
    exercise_type: ExerciseType = ExerciseType.strength
    sets: int | None = Field(None, ge=1)
    reps: int | None = Field(None, ge=1)
    weight_kg: float | None = Field(None, ge=0)
    distance_km: float | None = Field(None, ge=0)
    time_minutes: float | None = Field(None, ge=0)
    laps: int | None = Field(None, ge=1)
    notes: str | None = None
    exercise_sets: list[ExerciseSetIn] = Field(default_factory=list)


class ExerciseUpdate(BaseModel):
    """Partial update of an exercise's summary numbers."""

    sets: int | None = Field(None, ge=1)
    reps: int | None = Field(None, ge=1)
    weight_kg: float | None = Field(None, ge=0)
    distance_km: float | None = Field(None, ge=0)
    time_minutes: float | None = Field(None, ge=0)
    laps: int | None = Field(None, ge=1)
    notes: str | None = None


class ExerciseSetsReplace(BaseModel):
    sets: list[ExerciseSetIn]


class WorkoutSessionCreate(BaseModel):
    date: dt.date
    category: WorkoutCategory
    duration_minutes: int | None = Field(None, ge=1)
    notes: str | None = None
    workout_plan_id: int | None = None
    exercises: list[ExerciseCreate] = Field(..., min_length=1)


class WorkoutSessionUpdate(BaseModel):
    date: dt.date | None = None
    category: WorkoutCategory | None = None
    duration_minutes: int | None = Field(None, ge=1)
    notes: str | None = None


class CopyScheduleRequest(BaseModel):
    week_start_date: dt.date
    weeks: int = Field(default=6, ge=1, le=52)


class ExerciseSetOut(BaseModel):
    id: int
    set_number: int
    reps: int
    weight_kg: float | None


class ExerciseOut(BaseModel):
    id: int
    workout_session_id: int
    exercise_name: str
    exercise_type: str
    sets: int | None
    reps: int | None
    weight_kg: float | None
    distance_km: float | None
    time_minutes: float | None
    laps: int | None
    notes: str | None
    is_progressive: bool
    previous_weight_kg: float | None
    weight_improvement_kg: float | None
    exercise_sets: list[ExerciseSetOut]


class WorkoutSessionOut(BaseModel):
    id: int
    date: str
    category: str
    duration_minutes: int | None
    notes: str | None
    workout_plan_id: int | None
    exercises: list[ExerciseOut]


class WorkoutStats(BaseModel):
    total_workouts: int
    this_week_workouts: int
    total_sets: int


class CopyScheduleResponse(BaseModel):
    success: bool = True
    message: str
    sessions_created: int
    sessions: list[WorkoutSessionOut]
