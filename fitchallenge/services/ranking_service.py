"""Leaderboard aggregation.

`compute_rankings` is the only place per-user XP is summed for a challenge.
Both the leaderboard route and the finalizer call it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fitchallenge.core.clock import ensure_utc
from fitchallenge.core.errors import ChallengeNotFound
from fitchallenge.core.reward_policies import DEFAULT_DISPLAY_NAME
from fitchallenge.db.session import with_read_retry
from fitchallenge.models.challenge import Challenge
from fitchallenge.models.challenge_task import ChallengeTask
from fitchallenge.models.enrollment import Enrollment
from fitchallenge.models.profile import Profile
from fitchallenge.models.progress_record import ProgressRecord


@dataclass
class RankedParticipant:
    """One leaderboard row."""

    user_id: str
    display_name: str
    total_xp: int
    position: int
    enrolled_at: datetime


def compute_rankings(db: Session, challenge_id: str) -> list[RankedParticipant]:
    """
    Rank every enrolled user of a challenge by XP earned in it:
      1. total XP descending
      2. enrollment time ascending
      3. user id ascending

    Three queries regardless of participant count. Read only.
    """
    enrollments = db.execute(
        select(Enrollment.user_id, Enrollment.created_at).where(Enrollment.challenge_id == challenge_id)
    ).all()
    if not enrollments:
        return []

    xp_rows = db.execute(
        select(ProgressRecord.user_id, func.sum(ProgressRecord.xp_earned))
        .join(ChallengeTask, ChallengeTask.id == ProgressRecord.task_id)
        .where(ChallengeTask.challenge_id == challenge_id)
        .group_by(ProgressRecord.user_id)
    ).all()
    xp_by_user = {user_id: int(total or 0) for user_id, total in xp_rows}

    user_ids = [user_id for user_id, _ in enrollments]
    name_rows = db.execute(
        select(Profile.user_id, Profile.display_name).where(Profile.user_id.in_(user_ids))
    ).all()
    names = {user_id: name for user_id, name in name_rows}

    ordered = sorted(
        enrollments,
        key=lambda row: (-xp_by_user.get(row.user_id, 0), ensure_utc(row.created_at), row.user_id),
    )
    return [
        RankedParticipant(
            user_id=row.user_id,
            display_name=names.get(row.user_id) or DEFAULT_DISPLAY_NAME,
            total_xp=xp_by_user.get(row.user_id, 0),
            position=index + 1,
            enrolled_at=ensure_utc(row.created_at),
        )
        for index, row in enumerate(ordered)
    ]


def get_rankings(db: Session, challenge_id: str) -> list[RankedParticipant]:
    """Leaderboard for display. Transient store failures are retried."""

    def read() -> list[RankedParticipant]:
        if db.get(Challenge, challenge_id) is None:
            raise ChallengeNotFound()
        return compute_rankings(db, challenge_id)

    return with_read_retry(db, read)
