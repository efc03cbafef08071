"""Profile router — the caller's single career profile."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cvgen.database import get_db
from cvgen.models.user import User
from cvgen.schemas.profile import ProfileUpsertRequest, ProfileResponse
from cvgen.middleware.auth import get_current_user
from cvgen.services import profile_service

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.put("/me", response_model=ProfileResponse)
def upsert_my_profile(
    req: ProfileUpsertRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create or replace the caller's profile, sections included."""
    profile = profile_service.upsert_profile(db, current_user.id, req)
    return ProfileResponse(**profile_service.profile_snapshot(profile))


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = profile_service.get_profile_for_user(db, current_user.id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse(**profile_service.profile_snapshot(profile))
