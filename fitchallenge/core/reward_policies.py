"""Challenge and reward policy constants."""

from __future__ import annotations

# XP needed per profile level (level 1 starts at 0 XP)
XP_PER_LEVEL = 1000

# Display name used on leaderboards when a profile has none
DEFAULT_DISPLAY_NAME = "User"

# Reward table offered when an admin creates a challenge without one
DEFAULT_REWARD_TIERS = (
    (1, 100),
    (2, 50),
    (3, 25),
)

# Upper bound on challenges finalized by a single sweep pass
SWEEP_BATCH_LIMIT = 200
