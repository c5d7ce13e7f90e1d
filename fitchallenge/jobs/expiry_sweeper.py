"""Scheduled finalization of expired challenges."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.orm import Session

from fitchallenge.core.clock import ensure_utc, utcnow
from fitchallenge.core.config import settings
from fitchallenge.core.errors import AlreadyFinalized
from fitchallenge.core.reward_policies import SWEEP_BATCH_LIMIT
from fitchallenge.models.challenge import Challenge
from fitchallenge.services.finalization_service import FinalizationTrigger, finalize_challenge

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    processed: int = 0
    finalized: int = 0
    skipped: int = 0
    errors: int = 0


def expired_challenge_ids(db: Session, now: datetime, *, limit: int = SWEEP_BATCH_LIMIT) -> list[str]:
    return list(
        db.execute(
            select(Challenge.id)
            .where(Challenge.end_date < ensure_utc(now), Challenge.is_finished.is_(False))
            .order_by(Challenge.end_date.asc(), Challenge.id.asc())
            .limit(int(limit))
        ).scalars()
    )


def run_expiry_sweep(
    session_factory: Callable[[], Session],
    now: datetime,
    *,
    limit: int = SWEEP_BATCH_LIMIT,
) -> SweepReport:
    """Finalize every challenge whose end date has passed, with rewards.

    Each challenge is finalized in its own session. A challenge that someone
    else finalized meanwhile counts as skipped; any other failure is logged
    and the sweep moves on.
    """
    report = SweepReport()
    with session_factory() as db:
        challenge_ids = expired_challenge_ids(db, now, limit=limit)

    for challenge_id in challenge_ids:
        report.processed += 1
        with session_factory() as db:
            try:
                finalize_challenge(
                    db,
                    challenge_id,
                    give_rewards=True,
                    trigger=FinalizationTrigger.SCHEDULED,
                    now=now,
                )
                report.finalized += 1
            except AlreadyFinalized:
                report.skipped += 1
            except Exception:
                report.errors += 1
                logger.exception("sweep_finalize_failed challenge_id=%s", challenge_id)

    if report.processed:
        logger.info(
            "expiry_sweep processed=%s finalized=%s skipped=%s errors=%s",
            report.processed,
            report.finalized,
            report.skipped,
            report.errors,
        )
    return report


async def sweep_forever(
    session_factory: Callable[[], Session],
    interval_seconds: float | None = None,
) -> None:
    """Run the sweep every `interval_seconds` until cancelled."""
    interval = interval_seconds or settings.sweep_interval_seconds
    while True:
        try:
            await run_in_threadpool(run_expiry_sweep, session_factory, utcnow())
        except Exception:
            logger.exception("expiry_sweep_failed")
        await asyncio.sleep(interval)


if __name__ == "__main__":
    from fitchallenge.db.session import SessionLocal

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    result = run_expiry_sweep(SessionLocal, utcnow())
    logger.info("expiry_sweep_done %s", result)
