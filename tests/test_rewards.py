"""Reward payout tests."""

from fitchallenge.models import RankingEntry, RewardClaim
from fitchallenge.services.reward_service import credit_coins, disburse
from tests.helpers import coins_of, make_challenge, make_profile


def _entry(challenge, user_id, position, xp=10):
    return RankingEntry(challenge_id=challenge.id, user_id=user_id, position=position, total_xp=xp, coins_earned=0)


def test_credit_coins_increments_existing_balance(db):
    make_profile(db, "u", coins=40)
    credit_coins(db, "u", 25)
    db.commit()
    assert coins_of(db, "u") == 65


def test_credit_coins_creates_missing_profile(db):
    credit_coins(db, "new-user", 30)
    db.commit()
    assert coins_of(db, "new-user") == 30


def test_entries_sharing_a_position_are_each_paid(db):
    challenge = make_challenge(db, rewards=((1, 100), (2, 50), (3, 0)))
    entries = [_entry(challenge, "a", 1), _entry(challenge, "b", 1), _entry(challenge, "c", 3)]
    db.add_all(entries)
    db.flush()

    paid = disburse(db, challenge.id, entries)
    db.commit()

    assert paid == 200
    assert coins_of(db, "a") == 100
    assert coins_of(db, "b") == 100
    assert coins_of(db, "c") == 0


def test_users_with_a_claim_are_not_paid_again(db):
    challenge = make_challenge(db, rewards=((1, 100), (2, 50)))
    make_profile(db, "a", coins=100)
    db.add(RewardClaim(challenge_id=challenge.id, user_id="a", position=1, coins=100))
    db.commit()
    entries = [_entry(challenge, "a", 1, 50), _entry(challenge, "b", 2, 20)]
    db.add_all(entries)
    db.flush()

    paid = disburse(db, challenge.id, entries)
    db.commit()

    assert paid == 50
    assert coins_of(db, "a") == 100
    assert coins_of(db, "b") == 50
    assert entries[0].coins_earned == 0


def test_no_tiers_no_payout(db):
    challenge = make_challenge(db, rewards=())
    entries = [_entry(challenge, "a", 1)]
    db.add_all(entries)
    db.flush()

    assert disburse(db, challenge.id, entries) == 0
