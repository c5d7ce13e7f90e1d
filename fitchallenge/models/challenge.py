"""Challenge model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fitchallenge.db.base import Base


class Challenge(Base):
    """A time-boxed campaign users enroll in."""

    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    difficulty_level: Mapped[str | None] = mapped_column(String(30), nullable=True)
    daily_calories: Mapped[int | None] = mapped_column(Integer, nullable=True)
    daily_time_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_finished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    manually_finalized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    give_rewards_on_manual_finalization: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    tasks: Mapped[list["ChallengeTask"]] = relationship(
        back_populates="challenge",
        order_by="ChallengeTask.order_index",
        cascade="all, delete-orphan",
    )
    reward_tiers: Mapped[list["RewardTier"]] = relationship(
        back_populates="challenge",
        order_by="RewardTier.position",
        cascade="all, delete-orphan",
    )
