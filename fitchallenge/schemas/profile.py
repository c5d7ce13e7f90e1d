"""Profile schemas."""

from __future__ import annotations

from pydantic import BaseModel


class ProfileOut(BaseModel):
    user_id: str
    display_name: str | None
    coins: int
    total_xp: int
    level: int
    is_admin: bool

    model_config = {"from_attributes": True}


class AchievementOut(BaseModel):
    challenge_id: str
    challenge_title: str
    position: int
    total_xp: int
    coins_earned: int

    model_config = {"from_attributes": True}
