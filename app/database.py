# app/database.py
from typing import Any

from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Engine options
#
# Postgres (Supabase pooler, session mode):
#   - sslmode=require appended unless the URL already sets it
#   - one pooled connection and no overflow; the pooler caps clients
#     ("MaxClientsInSessionMode: max clients reached")
#   - pool_pre_ping so dropped pooler connections are replaced
#
# Anything else (SQLite for local runs and tests) only needs
# check_same_thread disabled for FastAPI's threadpool.
# ---------------------------------------------------------


def _engine_options(db_url: str) -> tuple[str, dict[str, Any]]:
    if not db_url.startswith("postgresql"):
        return db_url, {"connect_args": {"check_same_thread": False}}

    if "sslmode=" not in db_url:
        separator = "&" if "?" in db_url else "?"
        db_url = f"{db_url}{separator}sslmode=require"

    return db_url, {"pool_pre_ping": True, "pool_size": 1, "max_overflow": 0}


db_url, engine_kwargs = _engine_options(settings.DATABASE_URL)

engine = create_engine(db_url, echo=False, **engine_kwargs)


def create_db_and_tables() -> None:
    """Create missing tables for every imported SQLModel table (startup)."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    Request-scoped Session dependency.

    Services commit or roll back explicitly; the session is closed when the
    request finishes.
    """
    with Session(engine) as session:
        yield session
