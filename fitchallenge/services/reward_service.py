"""Coin payouts for finalized leaderboards.

Only the finalizer calls `disburse`, after it has won the challenge's
finalization guard and inside the same transaction. Nothing here commits.
"""

from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from fitchallenge.models.profile import Profile
from fitchallenge.models.ranking_entry import RankingEntry
from fitchallenge.models.reward_claim import RewardClaim
from fitchallenge.models.reward_tier import RewardTier

logger = logging.getLogger(__name__)


def credit_coins(db: Session, user_id: str, amount: int) -> None:
    """Add `amount` to the user's balance with a single atomic UPDATE."""
    result = db.execute(
        update(Profile)
        .where(Profile.user_id == user_id)
        .values(coins=Profile.coins + amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.add(Profile(user_id=user_id, coins=amount))
        db.flush()


def disburse(db: Session, challenge_id: str, entries: Sequence[RankingEntry]) -> int:
    """Pay each configured reward tier to the entries holding that position.

    Tied entries at a rewarded position are each paid in full. A reward claim
    row is written per paid user; users already holding one are skipped.
    Returns the total coins paid.
    """
    tiers = db.execute(
        select(RewardTier)
        .where(RewardTier.challenge_id == challenge_id, RewardTier.coins_reward > 0)
        .order_by(RewardTier.position)
    ).scalars().all()
    if not tiers:
        return 0

    already_paid = set(
        db.execute(select(RewardClaim.user_id).where(RewardClaim.challenge_id == challenge_id)).scalars()
    )
    by_position: dict[int, list[RankingEntry]] = {}
    for entry in entries:
        by_position.setdefault(entry.position, []).append(entry)

    total = 0
    for tier in tiers:
        for entry in by_position.get(tier.position, []):
            if entry.user_id in already_paid:
                logger.warning(
                    "reward_already_claimed challenge_id=%s user_id=%s",
                    challenge_id,
                    entry.user_id,
                )
                continue
            credit_coins(db, entry.user_id, tier.coins_reward)
            entry.coins_earned = tier.coins_reward
            db.add(
                RewardClaim(
                    challenge_id=challenge_id,
                    user_id=entry.user_id,
                    position=tier.position,
                    coins=tier.coins_reward,
                )
            )
            already_paid.add(entry.user_id)
            total += tier.coins_reward

    db.flush()
    return total
