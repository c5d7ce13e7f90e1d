"""Progress recording: one XP grant per (user, task)."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from fitchallenge.core.clock import ensure_utc
from fitchallenge.core.errors import (
    AlreadyCompleted,
    ChallengeClosed,
    ChallengeNotFound,
    NotEnrolled,
    PhotoRequired,
    StoreUnavailable,
    TaskNotFound,
    TaskNotUnlocked,
)
from fitchallenge.models.challenge import Challenge
from fitchallenge.models.challenge_task import ChallengeTask
from fitchallenge.models.enrollment import Enrollment
from fitchallenge.models.progress_record import ProgressRecord
from fitchallenge.services.availability_service import is_task_available

logger = logging.getLogger(__name__)


def _find_existing_record(db: Session, user_id: str, task_id: str) -> ProgressRecord | None:
    return db.execute(
        select(ProgressRecord).where(
            ProgressRecord.user_id == user_id,
            ProgressRecord.task_id == task_id,
        )
    ).scalar_one_or_none()


def is_enrolled(db: Session, challenge_id: str, user_id: str) -> bool:
    enrollment_id = db.execute(
        select(Enrollment.id).where(
            Enrollment.challenge_id == challenge_id,
            Enrollment.user_id == user_id,
        )
    ).scalar_one_or_none()
    return enrollment_id is not None


def complete_task(
    db: Session,
    *,
    user_id: str,
    challenge_id: str,
    task_id: str,
    now: datetime,
    photo_url: str | None = None,
    notes: str | None = None,
) -> ProgressRecord:
    """Record that `user_id` completed `task_id` at `now`.

    Checks run in a fixed order so callers always get the first failing
    reason: closed challenge, locked task, missing enrollment, duplicate
    completion, missing photo. XP is copied from the task at this moment.
    Rankings are not touched.
    """
    challenge = db.get(Challenge, challenge_id)
    if not challenge:
        raise ChallengeNotFound()
    task = db.get(ChallengeTask, task_id)
    if not task or task.challenge_id != challenge.id:
        raise TaskNotFound()

    if challenge.is_finished:
        raise ChallengeClosed()
    if not is_task_available(task, challenge, now):
        raise TaskNotUnlocked()
    if not is_enrolled(db, challenge.id, user_id):
        raise NotEnrolled()
    if _find_existing_record(db, user_id, task.id):
        raise AlreadyCompleted()
    if task.requires_photo and not photo_url:
        raise PhotoRequired()

    record = ProgressRecord(
        user_id=user_id,
        task_id=task.id,
        photo_url=photo_url,
        notes=notes,
        xp_earned=task.xp_points,
        completed_at=ensure_utc(now),
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError as exc:
        # A concurrent submission inserted the same (user, task) first.
        db.rollback()
        raise AlreadyCompleted() from exc
    except OperationalError as exc:
        db.rollback()
        logger.exception("task_complete_store_failed user_id=%s task_id=%s", user_id, task_id)
        raise StoreUnavailable() from exc
    db.refresh(record)
    logger.info(
        "task_completed user_id=%s challenge_id=%s task_id=%s xp=%s",
        user_id,
        challenge.id,
        task.id,
        record.xp_earned,
    )
    return record


def list_completed_task_ids(db: Session, challenge_id: str, user_id: str) -> set[str]:
    rows = db.execute(
        select(ProgressRecord.task_id)
        .join(ChallengeTask, ChallengeTask.id == ProgressRecord.task_id)
        .where(ChallengeTask.challenge_id == challenge_id, ProgressRecord.user_id == user_id)
    ).scalars()
    return set(rows)


def get_user_progress(db: Session, challenge_id: str, user_id: str) -> tuple[list[ProgressRecord], int]:
    """The user's progress records in a challenge and their XP total."""
    if not db.get(Challenge, challenge_id):
        raise ChallengeNotFound()
    records = list(
        db.execute(
            select(ProgressRecord)
            .join(ChallengeTask, ChallengeTask.id == ProgressRecord.task_id)
            .where(ChallengeTask.challenge_id == challenge_id, ProgressRecord.user_id == user_id)
            .order_by(ProgressRecord.completed_at, ProgressRecord.id)
        ).scalars()
    )
    return records, sum(record.xp_earned for record in records)


def total_xp_for_user(db: Session, user_id: str) -> int:
    total = db.execute(
        select(func.coalesce(func.sum(ProgressRecord.xp_earned), 0)).where(ProgressRecord.user_id == user_id)
    ).scalar_one()
    return int(total)
