from fittrack.models.user import User
from fittrack.models.refresh_token import RefreshToken
from fittrack.models.audit_log import AuditLog
from fittrack.models.workout_plan import WorkoutPlan
from fittrack.models.workout_session import WorkoutCategory, WorkoutSession
from fittrack.models.exercise import Exercise, ExerciseSet, ExerciseType
from fittrack.models.progress_photo import ProgressPhoto
from fittrack.models.shared_report import ReportComment, SharedReport

__all__ = [
    "User",
    "RefreshToken",
    "AuditLog",
    "WorkoutPlan",
    "WorkoutCategory",
    "WorkoutSession",
    "Exercise",
    "ExerciseSet",
    "ExerciseType",
    "ProgressPhoto",
    "SharedReport",
    "ReportComment",
]
