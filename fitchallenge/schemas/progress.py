"""Progress schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class TaskCompleteRequest(BaseModel):
    photo_url: str | None = Field(default=None, max_length=1024)
    notes: str | None = Field(default=None, max_length=2000)


class ProgressRecordOut(BaseModel):
    id: str
    user_id: str
    task_id: str
    photo_url: str | None
    notes: str | None
    xp_earned: int
    completed_at: datetime

    model_config = {"from_attributes": True}


class MyProgressOut(BaseModel):
    challenge_id: str
    total_xp: int
    completed_task_ids: list[str]
    records: list[ProgressRecordOut]
