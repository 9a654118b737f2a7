"""One day's logged (or planned) training for a user."""

import enum
import datetime as dt
from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from fittrack.db.base import Base


class WorkoutCategory(str, enum.Enum):
    push = "push"
    pull = "pull"
    legs = "legs"
    abs = "abs"
    cardio = "cardio"
    treadmill = "treadmill"


class WorkoutSession(Base):
    __tablename__ = "workout_sessions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workout_plan_id: Mapped[int | None] = mapped_column(
        ForeignKey("workout_plans.id", ondelete="SET NULL"), nullable=True, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False)  # WorkoutCategory value
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=dt.datetime.utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow
    )

    user: Mapped["User"] = relationship("User", back_populates="workout_sessions")
    workout_plan: Mapped["WorkoutPlan | None"] = relationship("WorkoutPlan", back_populates="workout_sessions")
    exercises: Mapped[list["Exercise"]] = relationship(
        "Exercise",
        back_populates="workout_session",
        cascade="all, delete-orphan",
        order_by="Exercise.id",
    )
