"""Admin API."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from fitchallenge.core.deps import get_now, require_admin
from fitchallenge.core.errors import ChallengeError
from fitchallenge.db.session import get_db
from fitchallenge.models.profile import Profile
from fitchallenge.schemas.ranking import FinalizeRequest, FinalizeResponse
from fitchallenge.services.finalization_service import finalize_challenge_manually

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/challenges/finalize", response_model=FinalizeResponse)
def finalize(
    data: FinalizeRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_admin),
    now: datetime = Depends(get_now),
):
    """Finalize a still-open challenge now, paying rewards only if asked to.

    Answers `{message, rankings, rewardsGiven}` or `{error}`.
    """
    if not data.challenge_id:
        return _error(status.HTTP_400_BAD_REQUEST, "Challenge ID is required")
    try:
        result = finalize_challenge_manually(db, data.challenge_id, data.give_rewards, now)
    except ChallengeError as e:
        return _error(e.status_code, str(e))
    except Exception as e:
        logger.exception("manual_finalize_failed challenge_id=%s admin=%s", data.challenge_id, current_user.user_id)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e) or "Finalization failed")

    logger.info(
        "manual_finalize challenge_id=%s admin=%s give_rewards=%s",
        data.challenge_id,
        current_user.user_id,
        data.give_rewards,
    )
    body = FinalizeResponse(
        message="Challenge finalized successfully",
        rankings=result.ranking_count,
        rewards_given=result.rewards_given,
    )
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(by_alias=True))
