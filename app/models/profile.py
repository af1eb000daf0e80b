# app/models/profile.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Application profile mirroring a Supabase Auth account.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "merchant" | "super_admin"

    Passwords live in Supabase Auth only; this table holds the display
    name, contact phone and application role.
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    full_name: str = Field(
        max_length=100,
        description="Owner / admin display name",
    )

    # Application role (not Supabase RLS role)
    role: str = Field(
        default="merchant",
        index=True,
        description="Application role: merchant | super_admin",
    )

    phone_number: str | None = Field(
        default=None,
        max_length=20,
    )

    # Keys of dashboard notices the user dismissed (onboarding checklist, ...)
    dismissed_notices: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
