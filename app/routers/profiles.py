# app/routers/profiles.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import get_current_profile
from app.database import get_session
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileRead, ProfileUpdate
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["Profiles"])

repo = ProfileRepository()
service = ProfileService(repo)


@router.get("/me", response_model=ProfileRead)
def get_me(current: Profile = Depends(get_current_profile)):
    """
    Return the authenticated profile.
    """
    return service.get_me(current)


@router.patch("/me", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(get_current_profile),
):
    return service.update_me(session, current, payload)


@router.post("/me/dismissed/{key}", response_model=ProfileRead)
def dismiss_notice(
    key: str,
    session: Session = Depends(get_session),
    current: Profile = Depends(get_current_profile),
):
    """
    Remember a dismissed notice for this account.
    """
    return service.dismiss_notice(session, current, key)
