# app/services/profile_service.py
import re

from sqlmodel import Session

from app.core.errors import ValidationError
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileUpdate

NOTICE_KEY_PATTERN = r"^[a-z0-9_.-]{1,64}$"


class ProfileService:
    """
    Business logic for Profile.

    Responsibilities:
      - self-service edits (role is never editable here)
      - per-user dismissed notices
    """

    def __init__(self, repo: ProfileRepository):
        self.repo = repo

    def get_me(self, current: Profile) -> Profile:
        """Return the current authenticated profile."""
        return current

    def update_me(
        self,
        session: Session,
        current: Profile,
        payload: ProfileUpdate,
    ) -> Profile:
        if payload.full_name is not None:
            current.full_name = payload.full_name

        if payload.phone_number is not None:
            current.phone_number = payload.phone_number.strip() or None

        return self.repo.update(session, current)

    def dismiss_notice(self, session: Session, current: Profile, key: str) -> Profile:
        """
        Remember that the user dismissed notice `key`. Idempotent.
        """
        if not re.fullmatch(NOTICE_KEY_PATTERN, key):
            raise ValidationError("Invalid notice key")

        notices = list(current.dismissed_notices or [])
        if key in notices:
            return current

        # Reassign so the JSON column is flagged dirty
        current.dismissed_notices = notices + [key]
        return self.repo.update(session, current)
