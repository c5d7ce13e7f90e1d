"""SQLAlchemy models."""

from __future__ import annotations

from fitchallenge.models.challenge import Challenge
from fitchallenge.models.challenge_task import ChallengeTask
from fitchallenge.models.enrollment import Enrollment
from fitchallenge.models.profile import Profile
from fitchallenge.models.progress_record import ProgressRecord
from fitchallenge.models.ranking_entry import RankingEntry
from fitchallenge.models.reward_claim import RewardClaim
from fitchallenge.models.reward_tier import RewardTier

__all__ = [
    "Challenge",
    "ChallengeTask",
    "Enrollment",
    "Profile",
    "ProgressRecord",
    "RankingEntry",
    "RewardClaim",
    "RewardTier",
]
