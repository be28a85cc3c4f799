from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, ContextManager, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from adinsights.config import settings
from adinsights.models import Base


def _engine_options(url: str) -> Dict[str, Any]:
    if not url.startswith("sqlite"):
        return {}
    # routes run in the threadpool, so one SQLite connection is shared across threads
    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
        options["poolclass"] = StaticPool
    return options


def create_metadata_engine(url: str) -> Engine:
    return create_engine(url, future=True, **_engine_options(url))


def session_scope(maker: sessionmaker) -> Callable[[], ContextManager[Session]]:
    """Wrap a sessionmaker in a commit-or-rollback context manager factory."""

    @contextmanager
    def scope() -> Iterator[Session]:
        session = maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return scope


metadata_engine = create_metadata_engine(settings.metadata_db_url)
# records are read after the session closes
SessionLocal = sessionmaker(bind=metadata_engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
db_session = session_scope(SessionLocal)


def init_metadata_db(engine: Engine = metadata_engine) -> None:
    Base.metadata.create_all(bind=engine)
