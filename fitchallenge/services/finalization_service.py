"""Challenge finalization.

A challenge is finalized exactly once, by whichever caller wins the guarded
UPDATE on `is_finished`. The scheduled sweep and the admin route both come
through `finalize_challenge`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import delete, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from fitchallenge.core.clock import ensure_utc
from fitchallenge.core.errors import AlreadyFinalized, ChallengeNotFound, StoreUnavailable
from fitchallenge.models.challenge import Challenge
from fitchallenge.models.ranking_entry import RankingEntry
from fitchallenge.services.ranking_service import compute_rankings
from fitchallenge.services.reward_service import disburse

logger = logging.getLogger(__name__)


class FinalizationTrigger(str, Enum):
    SCHEDULED = "scheduled"
    MANUAL = "manual"


@dataclass
class FinalizationResult:
    challenge_id: str
    ranking_count: int
    rewards_given: bool
    coins_awarded: int


def _claim(db: Session, challenge_id: str, now: datetime) -> bool:
    """Flip `is_finished` if nobody has yet. True when this caller won."""
    result = db.execute(
        update(Challenge)
        .where(Challenge.id == challenge_id, Challenge.is_finished.is_(False))
        .values(is_finished=True, is_active=False, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _replace_rankings(db: Session, challenge_id: str) -> list[RankingEntry]:
    db.execute(
        delete(RankingEntry)
        .where(RankingEntry.challenge_id == challenge_id)
        .execution_options(synchronize_session=False)
    )
    entries = [
        RankingEntry(
            challenge_id=challenge_id,
            user_id=ranked.user_id,
            position=ranked.position,
            total_xp=ranked.total_xp,
            coins_earned=0,
        )
        for ranked in compute_rankings(db, challenge_id)
    ]
    db.add_all(entries)
    db.flush()
    return entries


def finalize_challenge(
    db: Session,
    challenge_id: str,
    *,
    give_rewards: bool,
    trigger: FinalizationTrigger,
    now: datetime,
) -> FinalizationResult:
    """Close a challenge, rebuild its final rankings and optionally pay rewards.

    Runs as one transaction: guard, recompute, disburse, close. Any failure
    rolls all of it back, guard included, so the whole call can simply be
    run again. Raises AlreadyFinalized when another caller got there first.
    """
    now = ensure_utc(now)
    try:
        if not _claim(db, challenge_id, now):
            exists = db.execute(select(Challenge.id).where(Challenge.id == challenge_id)).scalar_one_or_none()
            db.rollback()
            if exists is None:
                raise ChallengeNotFound()
            raise AlreadyFinalized()

        entries = _replace_rankings(db, challenge_id)
        coins = disburse(db, challenge_id, entries) if give_rewards else 0

        db.execute(
            update(Challenge)
            .where(Challenge.id == challenge_id)
            .values(
                manually_finalized=trigger == FinalizationTrigger.MANUAL,
                give_rewards_on_manual_finalization=give_rewards,
                finalized_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except OperationalError as exc:
        db.rollback()
        logger.exception(
            "finalize_store_failed challenge_id=%s", challenge_id, extra={"trigger": trigger.value}
        )
        raise StoreUnavailable() from exc
    except (AlreadyFinalized, ChallengeNotFound):
        raise
    except Exception:
        db.rollback()
        logger.exception(
            "finalize_failed challenge_id=%s", challenge_id, extra={"trigger": trigger.value}
        )
        raise

    logger.info(
        "challenge_finalized challenge_id=%s trigger=%s rankings=%s rewards=%s coins=%s",
        challenge_id,
        trigger.value,
        len(entries),
        give_rewards,
        coins,
    )
    return FinalizationResult(
        challenge_id=challenge_id,
        ranking_count=len(entries),
        rewards_given=give_rewards,
        coins_awarded=coins,
    )


def finalize_challenge_manually(
    db: Session,
    challenge_id: str,
    give_rewards: bool,
    now: datetime,
) -> FinalizationResult:
    """Admin-triggered finalization. Authorization is the caller's job."""
    return finalize_challenge(
        db,
        challenge_id,
        give_rewards=give_rewards,
        trigger=FinalizationTrigger.MANUAL,
        now=now,
    )
