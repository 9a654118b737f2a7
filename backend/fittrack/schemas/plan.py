from pydantic import BaseModel


class WorkoutPlanOut(BaseModel):
    id: int
    name: str
    file_url: str | None
    created_at: str | None
    session_count: int = 0
