"""Ranking and finalization schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RankingOut(BaseModel):
    user_id: str
    display_name: str
    total_xp: int
    position: int

    model_config = {"from_attributes": True}


class FinalizeRequest(BaseModel):
    """Admin finalization body. Accepts camelCase like the web admin sends."""

    model_config = ConfigDict(populate_by_name=True)

    challenge_id: str = Field(default="", alias="challengeId")
    give_rewards: bool = Field(default=False, alias="giveRewards")


class FinalizeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    rankings: int
    rewards_given: bool = Field(serialization_alias="rewardsGiven")
