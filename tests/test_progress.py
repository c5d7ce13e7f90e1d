"""Progress recording tests."""

from datetime import time

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

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
from fitchallenge.models import ChallengeTask, ProgressRecord
from fitchallenge.services import progress_service
from fitchallenge.services.progress_service import complete_task, get_user_progress
from tests.helpers import at, enroll_user, make_challenge


def _count_records(db, user_id, task_id):
    return db.execute(
        select(func.count(ProgressRecord.id)).where(
            ProgressRecord.user_id == user_id, ProgressRecord.task_id == task_id
        )
    ).scalar_one()


def test_scenario_complete_then_duplicate(db):
    challenge = make_challenge(db, tasks=[{"xp_points": 10, "unlock_time": time(8, 0), "unlock_days": [1]}])
    task = challenge.tasks[0]
    enroll_user(db, challenge, "user-a")

    with pytest.raises(TaskNotUnlocked):
        complete_task(db, user_id="user-a", challenge_id=challenge.id, task_id=task.id, now=at(1, 7, 59))

    record = complete_task(db, user_id="user-a", challenge_id=challenge.id, task_id=task.id, now=at(1, 8, 0))
    assert record.xp_earned == 10

    with pytest.raises(AlreadyCompleted):
        complete_task(db, user_id="user-a", challenge_id=challenge.id, task_id=task.id, now=at(1, 9, 0))
    assert _count_records(db, "user-a", task.id) == 1


def test_unknown_challenge_and_task(db):
    challenge = make_challenge(db, tasks=[{}])
    other = make_challenge(db, title="other", tasks=[{}])

    with pytest.raises(ChallengeNotFound):
        complete_task(db, user_id="u", challenge_id="missing", task_id=challenge.tasks[0].id, now=at(1))
    with pytest.raises(TaskNotFound):
        complete_task(db, user_id="u", challenge_id=challenge.id, task_id=other.tasks[0].id, now=at(1))


def test_finished_challenge_is_checked_first(db):
    challenge = make_challenge(db, tasks=[{"unlock_days": [2]}])
    challenge.is_finished = True
    db.commit()

    # locked, not enrolled and finished: closed wins
    with pytest.raises(ChallengeClosed):
        complete_task(db, user_id="u", challenge_id=challenge.id, task_id=challenge.tasks[0].id, now=at(1))


def test_locked_task_reported_before_enrollment(db):
    challenge = make_challenge(db, tasks=[{"unlock_days": [2]}])
    with pytest.raises(TaskNotUnlocked):
        complete_task(db, user_id="u", challenge_id=challenge.id, task_id=challenge.tasks[0].id, now=at(1))


def test_requires_enrollment(db):
    challenge = make_challenge(db, tasks=[{}])
    with pytest.raises(NotEnrolled):
        complete_task(db, user_id="stranger", challenge_id=challenge.id, task_id=challenge.tasks[0].id, now=at(1))


def test_duplicate_reported_before_missing_photo(db):
    challenge = make_challenge(db, tasks=[{"requires_photo": True}])
    task = challenge.tasks[0]
    enroll_user(db, challenge, "u")

    with pytest.raises(PhotoRequired):
        complete_task(db, user_id="u", challenge_id=challenge.id, task_id=task.id, now=at(1))

    complete_task(db, user_id="u", challenge_id=challenge.id, task_id=task.id, now=at(1), photo_url="blob://p/1.jpg")
    with pytest.raises(AlreadyCompleted):
        complete_task(db, user_id="u", challenge_id=challenge.id, task_id=task.id, now=at(1))


def test_lost_insert_race_maps_to_already_completed(db, monkeypatch):
    challenge = make_challenge(db, tasks=[{}])
    task = challenge.tasks[0]
    enroll_user(db, challenge, "u")
    complete_task(db, user_id="u", challenge_id=challenge.id, task_id=task.id, now=at(1))

    # the existence check misses the row, as it would for a concurrent request
    monkeypatch.setattr(progress_service, "_find_existing_record", lambda *args: None)
    with pytest.raises(AlreadyCompleted):
        complete_task(db, user_id="u", challenge_id=challenge.id, task_id=task.id, now=at(1, 1))
    assert _count_records(db, "u", task.id) == 1


def test_xp_is_captured_at_completion(db):
    challenge = make_challenge(db, tasks=[{"xp_points": 10}])
    task = challenge.tasks[0]
    enroll_user(db, challenge, "u")
    complete_task(db, user_id="u", challenge_id=challenge.id, task_id=task.id, now=at(1))

    db.get(ChallengeTask, task.id).xp_points = 999
    db.commit()

    records, total = get_user_progress(db, challenge.id, "u")
    assert [r.xp_earned for r in records] == [10]
    assert total == 10


def test_photo_and_notes_are_stored(db):
    challenge = make_challenge(db, tasks=[{"requires_photo": True, "xp_points": 15}])
    enroll_user(db, challenge, "u")
    record = complete_task(
        db,
        user_id="u",
        challenge_id=challenge.id,
        task_id=challenge.tasks[0].id,
        now=at(1, 6),
        photo_url="blob://p/2.jpg",
        notes="felt good",
    )
    assert record.photo_url == "blob://p/2.jpg"
    assert record.notes == "felt good"
    assert record.xp_earned == 15


def test_store_failure_on_commit_is_reported_as_unavailable(db, monkeypatch):
    challenge = make_challenge(db, tasks=[{}])
    task = challenge.tasks[0]
    enroll_user(db, challenge, "u")
    task_id, challenge_id = task.id, challenge.id

    def locked():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", locked)
    with pytest.raises(StoreUnavailable):
        complete_task(db, user_id="u", challenge_id=challenge_id, task_id=task_id, now=at(1))

    assert _count_records(db, "u", task_id) == 0
