"""Challenge schemas."""

from __future__ import annotations

from datetime import datetime, time

from pydantic import BaseModel, Field, field_validator


class TaskCreate(BaseModel):
    title: str = Field(default="", max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    xp_points: int = Field(gt=0, le=100000)
    unlock_time: time | None = None
    unlock_days: list[int] = Field(default_factory=list, max_length=366)
    requires_photo: bool = False
    order_index: int | None = Field(default=None, ge=0)


class RewardTierIn(BaseModel):
    position: int = Field(ge=1)
    coins_reward: int = Field(ge=0)


class ChallengeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=5000)
    start_date: datetime
    end_date: datetime
    timezone: str | None = Field(default=None, max_length=64)
    max_participants: int | None = Field(default=None, ge=1)
    difficulty_level: str | None = Field(default=None, max_length=30)
    daily_calories: int | None = Field(default=None, ge=0)
    daily_time_minutes: int | None = Field(default=None, ge=0)
    tasks: list[TaskCreate] = Field(default_factory=list, max_length=200)
    reward_tiers: list[RewardTierIn] | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title is required")
        return value


class TaskOut(BaseModel):
    id: str
    challenge_id: str
    title: str
    description: str | None
    xp_points: int
    unlock_time: time | None
    unlock_days: list[int]
    requires_photo: bool
    order_index: int

    model_config = {"from_attributes": True}


class TaskStatusOut(TaskOut):
    is_available: bool
    is_completed: bool


class RewardTierOut(BaseModel):
    position: int
    coins_reward: int

    model_config = {"from_attributes": True}


class ChallengeSummaryOut(BaseModel):
    id: str
    title: str
    description: str
    start_date: datetime
    end_date: datetime
    timezone: str | None
    max_participants: int | None
    total_days: int | None
    difficulty_level: str | None
    daily_calories: int | None
    daily_time_minutes: int | None
    is_active: bool
    is_finished: bool
    manually_finalized: bool
    created_by: str
    finalized_at: datetime | None
    participant_count: int = 0
    reward_tiers: list[RewardTierOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ChallengeDetailOut(ChallengeSummaryOut):
    tasks: list[TaskOut] = Field(default_factory=list)


class EnrollmentOut(BaseModel):
    id: str
    challenge_id: str
    user_id: str
    created_at: datetime

    model_config = {"from_attributes": True}
