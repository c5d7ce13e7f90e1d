"""Challenge task ("challenge item") model."""

from __future__ import annotations

import uuid
from datetime import time

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from fitchallenge.db.base import Base


class ChallengeTask(Base):
    """A unit of daily work; completing it earns `xp_points`."""

    __tablename__ = "challenge_tasks"
    __table_args__ = (
        CheckConstraint("xp_points > 0", name="ck_challenge_tasks_xp_positive"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    challenge_id: Mapped[str] = mapped_column(
        ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    xp_points: Mapped[int] = mapped_column(Integer, nullable=False)
    unlock_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    # 1-based challenge day numbers; empty means every day
    unlock_days: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    requires_photo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    challenge: Mapped["Challenge"] = relationship(back_populates="tasks")
