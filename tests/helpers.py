"""Builders shared by the test modules."""

from datetime import datetime, time, timedelta, timezone

from fitchallenge.core.security import create_access_token
from fitchallenge.models import Challenge, ChallengeTask, Enrollment, Profile, ProgressRecord, RewardTier

START = datetime(2026, 3, 1, tzinfo=timezone.utc)


def at(day: int, hour: int = 0, minute: int = 0, start: datetime = START) -> datetime:
    """Instant on challenge day `day` (1-based) at hh:mm after the start."""
    return start + timedelta(days=day - 1, hours=hour, minutes=minute)


def make_challenge(
    db,
    *,
    title="30-day",
    start=START,
    days=30,
    tasks=(),
    rewards=((1, 100),),
    tz="UTC",
    max_participants=None,
) -> Challenge:
    challenge = Challenge(
        title=title,
        description="",
        start_date=start,
        end_date=start + timedelta(days=days),
        timezone=tz,
        total_days=days,
        max_participants=max_participants,
        is_active=True,
        is_finished=False,
        created_by="admin-1",
    )
    for index, task in enumerate(tasks):
        fields = {"title": f"Task {index + 1}", "xp_points": 10, "unlock_days": []}
        fields.update(task)
        challenge.tasks.append(ChallengeTask(order_index=index, **fields))
    for position, coins in rewards:
        challenge.reward_tiers.append(RewardTier(position=position, coins_reward=coins))
    db.add(challenge)
    db.commit()
    db.refresh(challenge)
    return challenge


def enroll_user(db, challenge: Challenge, user_id: str, enrolled_at: datetime | None = None) -> Enrollment:
    enrollment = Enrollment(challenge_id=challenge.id, user_id=user_id)
    if enrolled_at is not None:
        enrollment.created_at = enrolled_at
    db.add(enrollment)
    db.commit()
    return enrollment


def grant_xp(db, user_id: str, task: ChallengeTask, completed_at: datetime = START) -> ProgressRecord:
    record = ProgressRecord(
        user_id=user_id,
        task_id=task.id,
        xp_earned=task.xp_points,
        completed_at=completed_at,
    )
    db.add(record)
    db.commit()
    return record


def make_profile(db, user_id: str, *, display_name=None, coins=0, is_admin=False) -> Profile:
    profile = Profile(user_id=user_id, display_name=display_name, coins=coins, is_admin=is_admin)
    db.add(profile)
    db.commit()
    return profile


def coins_of(db, user_id: str) -> int:
    db.expire_all()
    profile = db.get(Profile, user_id)
    return profile.coins if profile else 0


def auth_headers(user_id: str, name: str | None = None) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, display_name=name)}"}


MORNING = time(8, 0)
