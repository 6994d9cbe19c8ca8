"""Engine construction for the entity store and audit ledger."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from services.coordination.src.coordination.config import settings

_shared: Engine | None = None


def build_engine(url: str) -> Engine:
    """Create an engine tuned for the backend behind ``url``."""
    if url.startswith("sqlite"):
        # Route handlers and the sweeper share the file from worker threads
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def get_engine() -> Engine:
    """Process-wide engine for ``settings.database_url``, created on first use."""
    global _shared
    if _shared is None:
        _shared = build_engine(settings.database_url)
    return _shared


def dispose_engine() -> None:
    """Close pooled connections. The next get_engine() starts a new pool."""
    global _shared
    if _shared is not None:
        _shared.dispose()
        _shared = None
