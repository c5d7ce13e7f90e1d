"""Reward tier model."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fitchallenge.db.base import Base


class RewardTier(Base):
    """Coins paid to the leaderboard position `position` at finalization."""

    __tablename__ = "reward_tiers"
    __table_args__ = (
        UniqueConstraint("challenge_id", "position", name="uq_reward_tier_challenge_position"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    challenge_id: Mapped[str] = mapped_column(
        ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    coins_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    challenge: Mapped["Challenge"] = relationship(back_populates="reward_tiers")
