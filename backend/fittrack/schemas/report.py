"""Weekly report and sharing schemas."""

from datetime import date

from pydantic import BaseModel, Field

from fittrack.schemas.photo import ProgressPhotoOut
from fittrack.schemas.workout import WorkoutSessionOut


class WeekStats(BaseModel):
    total_workouts: int
    total_exercises: int
    total_sets: int
    categories_worked: list[str]


class WeekRange(BaseModel):
    start: str
    end: str


class WeeklyReport(BaseModel):
    workouts: list[WorkoutSessionOut]
    progress_photos: list[ProgressPhotoOut]
    stats: WeekStats
    week_range: WeekRange


class WeeklyPdfRequest(BaseModel):
    week_start_date: date


class ShareCreateRequest(BaseModel):
    week_start_date: date
    title: str | None = Field(None, max_length=255)


class ShareCreateResponse(BaseModel):
    success: bool = True
    share_token: str
    share_url: str


class CommentCreate(BaseModel):
    commenter_name: str = Field(..., min_length=1, max_length=255)
    comment_text: str = Field(..., min_length=1, max_length=5000)


class CommentOut(BaseModel):
    id: int
    commenter_name: str
    comment_text: str
    created_at: str | None


class SharedReportOut(BaseModel):
    id: int
    share_token: str
    week_start_date: str
    title: str | None
    is_active: bool
    created_at: str | None


class SharedReportWithComments(SharedReportOut):
    comments: list[CommentOut]


class SharedReportView(WeeklyReport):
    """Public payload behind a share token."""

    success: bool = True
    report: SharedReportOut
    comments: list[CommentOut]
