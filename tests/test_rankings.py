"""Leaderboard aggregation tests."""

from datetime import timedelta

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import OperationalError

from fitchallenge.core.errors import ChallengeNotFound, StoreUnavailable
from fitchallenge.models import ChallengeTask, ProgressRecord
from fitchallenge.services import ranking_service
from fitchallenge.services.progress_service import complete_task
from fitchallenge.services.ranking_service import compute_rankings, get_rankings
from tests.conftest import engine
from tests.helpers import START, at, enroll_user, grant_xp, make_challenge, make_profile


def test_orders_by_xp_descending(db):
    challenge = make_challenge(db, tasks=[{"xp_points": 30}, {"xp_points": 50}])
    make_profile(db, "user-a", display_name="Alice")
    make_profile(db, "user-b", display_name="Bob")
    enroll_user(db, challenge, "user-a", START)
    enroll_user(db, challenge, "user-b", START + timedelta(minutes=1))
    grant_xp(db, "user-a", challenge.tasks[0])
    grant_xp(db, "user-b", challenge.tasks[1])

    ranked = compute_rankings(db, challenge.id)

    assert [(r.user_id, r.position, r.total_xp) for r in ranked] == [("user-b", 1, 50), ("user-a", 2, 30)]
    assert [r.display_name for r in ranked] == ["Bob", "Alice"]


def test_enrolled_user_without_progress_ranks_with_zero(db):
    challenge = make_challenge(db, tasks=[{"xp_points": 10}])
    enroll_user(db, challenge, "active", START)
    enroll_user(db, challenge, "idle", START)
    grant_xp(db, "active", challenge.tasks[0])

    ranked = compute_rankings(db, challenge.id)
    assert [(r.user_id, r.total_xp) for r in ranked] == [("active", 10), ("idle", 0)]
    # no profile row yet
    assert ranked[1].display_name == "User"


def test_ties_break_on_enrollment_time_then_user_id(db):
    challenge = make_challenge(db, tasks=[{"xp_points": 20}])
    enroll_user(db, challenge, "zed", START)
    enroll_user(db, challenge, "amy", START + timedelta(hours=2))
    enroll_user(db, challenge, "bob", START + timedelta(hours=2))
    for user_id in ("zed", "amy", "bob"):
        grant_xp(db, user_id, challenge.tasks[0])

    ranked = compute_rankings(db, challenge.id)
    assert [(r.user_id, r.position) for r in ranked] == [("zed", 1), ("amy", 2), ("bob", 3)]


def test_progress_in_other_challenges_is_ignored(db):
    challenge = make_challenge(db, tasks=[{"xp_points": 10}])
    other = make_challenge(db, title="other", tasks=[{"xp_points": 500}])
    enroll_user(db, challenge, "u", START)
    enroll_user(db, other, "u", START)
    grant_xp(db, "u", challenge.tasks[0])
    grant_xp(db, "u", other.tasks[0])

    assert compute_rankings(db, challenge.id)[0].total_xp == 10


def test_repeated_computation_is_identical(db):
    challenge = make_challenge(db, tasks=[{"xp_points": 10}, {"xp_points": 10}])
    for index in range(6):
        enroll_user(db, challenge, f"user-{index}", START)
    grant_xp(db, "user-3", challenge.tasks[0])
    grant_xp(db, "user-3", challenge.tasks[1])
    grant_xp(db, "user-5", challenge.tasks[0])
    grant_xp(db, "user-1", challenge.tasks[1])

    assert compute_rankings(db, challenge.id) == compute_rankings(db, challenge.id)


def test_xp_totals_match_progress_records(db):
    challenge = make_challenge(db, days=3, tasks=[{"xp_points": 10}, {"xp_points": 25}, {"xp_points": 40}])
    users = ["a", "b", "c", "d"]
    for user_id in users:
        enroll_user(db, challenge, user_id, START)
    # d completes nothing
    for index, user_id in enumerate(users[:3]):
        for task in challenge.tasks[: index + 1]:
            complete_task(db, user_id=user_id, challenge_id=challenge.id, task_id=task.id, now=at(1, 10))

    ranked_total = sum(r.total_xp for r in compute_rankings(db, challenge.id))
    recorded_total = db.execute(
        select(func.sum(ProgressRecord.xp_earned))
        .join(ChallengeTask, ChallengeTask.id == ProgressRecord.task_id)
        .where(ChallengeTask.challenge_id == challenge.id)
    ).scalar_one()
    assert ranked_total == recorded_total == 10 + 35 + 75


def _statements_for(db, challenge_id):
    seen = []

    def count(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    event.listen(engine, "before_cursor_execute", count)
    try:
        compute_rankings(db, challenge_id)
    finally:
        event.remove(engine, "before_cursor_execute", count)
    return len(seen)


def test_query_count_does_not_grow_with_participants(db):
    small = make_challenge(db, title="small", tasks=[{"xp_points": 10}])
    large = make_challenge(db, title="large", tasks=[{"xp_points": 10}])
    for index in range(2):
        enroll_user(db, small, f"s-{index}", START)
        grant_xp(db, f"s-{index}", small.tasks[0])
    for index in range(25):
        enroll_user(db, large, f"l-{index}", START)
        make_profile(db, f"l-{index}", display_name=f"L{index}")
        grant_xp(db, f"l-{index}", large.tasks[0])

    assert _statements_for(db, small.id) == _statements_for(db, large.id) == 3


def test_get_rankings_unknown_challenge(db):
    with pytest.raises(ChallengeNotFound):
        get_rankings(db, "missing")


def test_get_rankings_retries_transient_failures(db, monkeypatch):
    challenge = make_challenge(db, tasks=[{"xp_points": 10}])
    enroll_user(db, challenge, "u", START)
    real = ranking_service.compute_rankings
    calls = {"n": 0}

    def flaky(session, challenge_id):
        calls["n"] += 1
        if calls["n"] < 3:
            raise OperationalError("SELECT", {}, Exception("database is locked"))
        return real(session, challenge_id)

    monkeypatch.setattr(ranking_service, "compute_rankings", flaky)
    ranked = get_rankings(db, challenge.id)
    assert calls["n"] == 3
    assert [r.user_id for r in ranked] == ["u"]


def test_get_rankings_gives_up_with_store_unavailable(db, monkeypatch):
    challenge = make_challenge(db)

    def down(session, challenge_id):
        raise OperationalError("SELECT", {}, Exception("timeout"))

    monkeypatch.setattr(ranking_service, "compute_rankings", down)
    with pytest.raises(StoreUnavailable):
        get_rankings(db, challenge.id)
