"""Profiles API."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fitchallenge.core.deps import get_current_user
from fitchallenge.db.session import get_db
from fitchallenge.models.profile import Profile
from fitchallenge.schemas.profile import AchievementOut, ProfileOut
from fitchallenge.services.profile_service import list_achievements, refresh_profile_totals

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileOut)
def me(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Coin balance plus XP and level across every challenge."""
    return refresh_profile_totals(db, current_user)


@router.get("/me/achievements", response_model=list[AchievementOut])
def achievements(
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_current_user),
):
    """Final standings in finished challenges."""
    return list_achievements(db, current_user.user_id)
