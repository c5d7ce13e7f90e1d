"""Challenge catalogue and enrollment."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import func, insert, literal, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, selectinload

from fitchallenge.core.clock import ensure_utc
from fitchallenge.core.config import settings
from fitchallenge.core.errors import (
    AlreadyEnrolled,
    ChallengeClosed,
    ChallengeFull,
    ChallengeNotFound,
    InvalidChallenge,
    StoreUnavailable,
)
from fitchallenge.core.reward_policies import DEFAULT_REWARD_TIERS
from fitchallenge.models.challenge import Challenge
from fitchallenge.models.challenge_task import ChallengeTask
from fitchallenge.models.enrollment import Enrollment
from fitchallenge.models.reward_tier import RewardTier
from fitchallenge.schemas.challenge import ChallengeCreate
from fitchallenge.services.availability_service import total_days_between

logger = logging.getLogger(__name__)


def _validate(data: ChallengeCreate, total_days: int) -> None:
    if ensure_utc(data.end_date) <= ensure_utc(data.start_date):
        raise InvalidChallenge("End date must be after start date")
    if data.timezone:
        try:
            ZoneInfo(data.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidChallenge(f"Unknown timezone {data.timezone}") from exc
    for task in data.tasks:
        bad_days = [day for day in task.unlock_days if day < 1 or day > total_days]
        if bad_days:
            raise InvalidChallenge(f"Unlock days out of range 1..{total_days}: {bad_days}")
    if data.reward_tiers is not None:
        positions = [tier.position for tier in data.reward_tiers]
        if len(positions) != len(set(positions)):
            raise InvalidChallenge("Reward positions must be unique")


def create_challenge(db: Session, created_by: str, data: ChallengeCreate) -> Challenge:
    """Create a challenge with its tasks and reward table in one commit.

    Tasks with a blank title are dropped. Without an explicit reward table the
    default 100/50/25 podium is used.
    """
    total_days = total_days_between(data.start_date, data.end_date)
    _validate(data, total_days)

    challenge = Challenge(
        title=data.title.strip(),
        description=data.description,
        start_date=ensure_utc(data.start_date),
        end_date=ensure_utc(data.end_date),
        timezone=data.timezone or settings.default_timezone,
        max_participants=data.max_participants,
        total_days=total_days,
        difficulty_level=data.difficulty_level,
        daily_calories=data.daily_calories,
        daily_time_minutes=data.daily_time_minutes,
        is_active=True,
        is_finished=False,
        created_by=created_by,
    )
    kept_tasks = [task for task in data.tasks if task.title.strip()]
    for index, task in enumerate(kept_tasks):
        challenge.tasks.append(
            ChallengeTask(
                title=task.title.strip(),
                description=task.description,
                xp_points=task.xp_points,
                unlock_time=task.unlock_time,
                unlock_days=sorted(set(task.unlock_days)),
                requires_photo=task.requires_photo,
                order_index=index if task.order_index is None else task.order_index,
            )
        )

    if data.reward_tiers is None:
        tiers = list(DEFAULT_REWARD_TIERS)
    else:
        tiers = [(tier.position, tier.coins_reward) for tier in data.reward_tiers]
    for position, coins in tiers:
        challenge.reward_tiers.append(RewardTier(position=position, coins_reward=coins))

    db.add(challenge)
    try:
        db.commit()
    except OperationalError as exc:
        db.rollback()
        logger.exception("challenge_create_store_failed by=%s", created_by)
        raise StoreUnavailable() from exc
    db.refresh(challenge)
    logger.info(
        "challenge_created challenge_id=%s tasks=%s days=%s by=%s",
        challenge.id,
        len(kept_tasks),
        total_days,
        created_by,
    )
    return challenge


def get_challenge(db: Session, challenge_id: str) -> Challenge:
    challenge = db.execute(
        select(Challenge)
        .where(Challenge.id == challenge_id)
        .options(selectinload(Challenge.tasks), selectinload(Challenge.reward_tiers))
    ).scalar_one_or_none()
    if not challenge:
        raise ChallengeNotFound()
    return challenge


def participant_counts(db: Session, challenge_ids: list[str]) -> dict[str, int]:
    if not challenge_ids:
        return {}
    rows = db.execute(
        select(Enrollment.challenge_id, func.count(Enrollment.id))
        .where(Enrollment.challenge_id.in_(challenge_ids))
        .group_by(Enrollment.challenge_id)
    ).all()
    return {challenge_id: int(count) for challenge_id, count in rows}


def list_challenges(db: Session, *, include_finished: bool = True) -> list[tuple[Challenge, int]]:
    """Challenges newest first, each with its participant count."""
    stmt = select(Challenge).options(selectinload(Challenge.reward_tiers)).order_by(
        Challenge.start_date.desc(), Challenge.id
    )
    if not include_finished:
        stmt = stmt.where(Challenge.is_finished.is_(False))
    challenges = list(db.execute(stmt).scalars())
    counts = participant_counts(db, [challenge.id for challenge in challenges])
    return [(challenge, counts.get(challenge.id, 0)) for challenge in challenges]


def _insert_enrollment(db: Session, challenge: Challenge, user_id: str, now: datetime | None) -> str | None:
    """Insert the enrollment only while the challenge still has room.

    Count and insert are one INSERT ... SELECT, so two joins racing for the
    last seat cannot both land. Returns the new id, or None when full.
    """
    enrollment_id = str(uuid.uuid4())
    columns = Enrollment.__table__.c
    created_at = literal(ensure_utc(now), columns.created_at.type) if now is not None else func.now()
    rows = select(
        literal(enrollment_id, columns.id.type),
        literal(challenge.id, columns.challenge_id.type),
        literal(user_id, columns.user_id.type),
        created_at,
    )
    if challenge.max_participants is not None:
        enrolled = (
            select(func.count(Enrollment.id))
            .where(Enrollment.challenge_id == challenge.id)
            .correlate(None)
            .scalar_subquery()
        )
        rows = rows.where(enrolled < challenge.max_participants)

    result = db.execute(
        insert(Enrollment.__table__).from_select(["id", "challenge_id", "user_id", "created_at"], rows)
    )
    return enrollment_id if result.rowcount == 1 else None


def enroll(db: Session, challenge_id: str, user_id: str, now: datetime | None = None) -> Enrollment:
    # row lock serializes joins on PostgreSQL; SQLite serializes the insert itself
    challenge = db.execute(
        select(Challenge).where(Challenge.id == challenge_id).with_for_update()
    ).scalar_one_or_none()
    if not challenge:
        raise ChallengeNotFound()
    if challenge.is_finished:
        db.rollback()
        raise ChallengeClosed()

    existing = db.execute(
        select(Enrollment.id).where(Enrollment.challenge_id == challenge_id, Enrollment.user_id == user_id)
    ).scalar_one_or_none()
    if existing:
        db.rollback()
        raise AlreadyEnrolled()

    try:
        enrollment_id = _insert_enrollment(db, challenge, user_id, now)
        if enrollment_id is None:
            db.rollback()
            raise ChallengeFull()
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise AlreadyEnrolled() from exc
    except OperationalError as exc:
        db.rollback()
        logger.exception("enroll_store_failed challenge_id=%s user_id=%s", challenge_id, user_id)
        raise StoreUnavailable() from exc

    logger.info("user_enrolled challenge_id=%s user_id=%s", challenge_id, user_id)
    return db.get(Enrollment, enrollment_id)
