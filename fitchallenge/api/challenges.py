"""Challenges API: catalogue, enrollment, task completion and leaderboards."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from fitchallenge.core.deps import get_current_user, get_now, require_admin
from fitchallenge.core.errors import ChallengeError
from fitchallenge.db.session import get_db
from fitchallenge.models.challenge import Challenge
from fitchallenge.models.profile import Profile
from fitchallenge.schemas.challenge import (
    ChallengeCreate,
    ChallengeDetailOut,
    ChallengeSummaryOut,
    EnrollmentOut,
    TaskOut,
    TaskStatusOut,
)
from fitchallenge.schemas.progress import MyProgressOut, ProgressRecordOut, TaskCompleteRequest
from fitchallenge.schemas.ranking import RankingOut
from fitchallenge.services.availability_service import is_task_available
from fitchallenge.services.challenge_service import (
    create_challenge,
    enroll,
    get_challenge,
    list_challenges,
    participant_counts,
)
from fitchallenge.services.progress_service import (
    complete_task,
    get_user_progress,
    list_completed_task_ids,
)
from fitchallenge.services.ranking_service import get_rankings

router = APIRouter(prefix="/challenges", tags=["challenges"])
logger = logging.getLogger(__name__)


def _detail(challenge: Challenge, participant_count: int) -> ChallengeDetailOut:
    out = ChallengeDetailOut.model_validate(challenge)
    return out.model_copy(update={"participant_count": participant_count})


@router.post("", response_model=ChallengeDetailOut, status_code=status.HTTP_201_CREATED)
def create(
    data: ChallengeCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(require_admin),
):
    """Admin creates a challenge with its tasks and reward table."""
    try:
        challenge = create_challenge(db, current_user.user_id, data)
    except ChallengeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _detail(get_challenge(db, challenge.id), 0)


@router.get("", response_model=list[ChallengeSummaryOut])
def list_all(
    include_finished: bool = True,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    return [
        ChallengeSummaryOut.model_validate(challenge).model_copy(update={"participant_count": count})
        for challenge, count in list_challenges(db, include_finished=include_finished)
    ]


@router.get("/{challenge_id}", response_model=ChallengeDetailOut)
def get_one(
    challenge_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    try:
        challenge = get_challenge(db, challenge_id)
    except ChallengeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _detail(challenge, participant_counts(db, [challenge.id]).get(challenge.id, 0))


@router.post("/{challenge_id}/enroll", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def join(
    challenge_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    try:
        return enroll(db, challenge_id, current_user.user_id, now=now)
    except ChallengeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{challenge_id}/tasks", response_model=list[TaskStatusOut])
def list_tasks(
    challenge_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    """Tasks in display order, with availability at server time and the caller's completion state."""
    try:
        challenge = get_challenge(db, challenge_id)
    except ChallengeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    completed = list_completed_task_ids(db, challenge.id, current_user.user_id)
    return [
        TaskStatusOut(
            **TaskOut.model_validate(task).model_dump(),
            is_available=not challenge.is_finished and is_task_available(task, challenge, now),
            is_completed=task.id in completed,
        )
        for task in challenge.tasks
    ]


@router.post("/{challenge_id}/tasks/{task_id}/complete", response_model=ProgressRecordOut)
def complete(
    challenge_id: str,
    task_id: str,
    data: TaskCompleteRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    try:
        return complete_task(
            db,
            user_id=current_user.user_id,
            challenge_id=challenge_id,
            task_id=task_id,
            now=now,
            photo_url=data.photo_url,
            notes=data.notes,
        )
    except ChallengeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/{challenge_id}/progress/me", response_model=MyProgressOut)
def my_progress(
    challenge_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    try:
        records, total_xp = get_user_progress(db, challenge_id, current_user.user_id)
    except ChallengeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return MyProgressOut(
        challenge_id=challenge_id,
        total_xp=total_xp,
        completed_task_ids=[record.task_id for record in records],
        records=[ProgressRecordOut.model_validate(record) for record in records],
    )


@router.get("/{challenge_id}/rankings", response_model=list[RankingOut])
def rankings(
    challenge_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    try:
        return get_rankings(db, challenge_id)
    except ChallengeError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
