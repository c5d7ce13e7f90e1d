"""Profile lookup, summary and achievements."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fitchallenge.core.reward_policies import XP_PER_LEVEL
from fitchallenge.models.challenge import Challenge
from fitchallenge.models.profile import Profile
from fitchallenge.models.ranking_entry import RankingEntry
from fitchallenge.services.progress_service import total_xp_for_user


@dataclass
class Achievement:
    """Final standing in a finished challenge."""

    challenge_id: str
    challenge_title: str
    position: int
    total_xp: int
    coins_earned: int


def level_for_xp(total_xp: int) -> int:
    return max(total_xp, 0) // XP_PER_LEVEL + 1


def get_or_create_profile(db: Session, user_id: str, display_name: str | None = None) -> Profile:
    profile = db.get(Profile, user_id)
    if profile:
        return profile

    profile = Profile(user_id=user_id, display_name=display_name, coins=0, total_xp=0, level=1)
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent request created the row first; load and return it.
        db.rollback()
        existing = db.get(Profile, user_id)
        if existing:
            return existing
        raise
    db.refresh(profile)
    return profile


def refresh_profile_totals(db: Session, profile: Profile) -> Profile:
    """Recompute the derived XP and level display fields from progress records."""
    total_xp = total_xp_for_user(db, profile.user_id)
    level = level_for_xp(total_xp)
    if profile.total_xp != total_xp or profile.level != level:
        profile.total_xp = total_xp
        profile.level = level
        db.commit()
        db.refresh(profile)
    return profile


def list_achievements(db: Session, user_id: str) -> list[Achievement]:
    rows = db.execute(
        select(RankingEntry, Challenge.title)
        .join(Challenge, Challenge.id == RankingEntry.challenge_id)
        .where(RankingEntry.user_id == user_id, Challenge.is_finished.is_(True))
        .order_by(Challenge.end_date.desc(), Challenge.id)
    ).all()
    return [
        Achievement(
            challenge_id=entry.challenge_id,
            challenge_title=title,
            position=entry.position,
            total_xp=entry.total_xp,
            coins_earned=entry.coins_earned,
        )
        for entry, title in rows
    ]
