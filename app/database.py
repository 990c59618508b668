"""
Database engine and session management for the membership portal.

Sessions are synchronous and scoped to one request; routers hand them to
the import services explicitly. Production runs on hosted Postgres, local
runs may point DB_URL at SQLite.
"""

from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings


def engine_options(database_url: str, debug: bool = False) -> dict[str, Any]:
    """Keyword arguments for create_engine, per backend."""
    options: dict[str, Any] = {"echo": debug}  # Log SQL when DEBUG=true

    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        # Requests run in a threadpool; in-memory databases need one shared connection
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True  # Hosted poolers drop idle connections
        options["pool_recycle"] = 1800

    return options


settings = get_settings()
engine = create_engine(settings.database_url, **engine_options(settings.database_url, settings.debug))

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @router.get("/api/organizations")
        async def list_organizations(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
