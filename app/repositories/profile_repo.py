# app/repositories/profile_repo.py
import uuid

from sqlmodel import Session

from app.models.profile import Profile


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_id(self, session: Session, profile_id: uuid.UUID) -> Profile | None:
        """Return a Profile by primary key, or None if not found."""
        return session.get(Profile, profile_id)

    def upsert(self, session: Session, profile: Profile) -> Profile:
        """
        Insert or overwrite the profile with this id (flush only).

        Provisioning relies on the caller to commit or roll back.
        """
        merged = session.merge(profile)
        session.flush()
        return merged

    def update(self, session: Session, profile: Profile) -> Profile:
        """Persist changes to an existing Profile."""
        session.add(profile)
        session.commit()
        session.refresh(profile)
        return profile
