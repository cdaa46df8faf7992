from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

# Base class for all database models
Base = declarative_base()


class Database:
    """
    Owns the engine and session factory for one application instance.

    Built by create_app() and stored on app.state, so tests and multiple
    apps in one process each get their own connection pool.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        connect_args = {}
        if url.startswith("sqlite"):
            # Sessions are handed across FastAPI's threadpool workers
            connect_args["check_same_thread"] = False
        self.url = url
        self.engine: Engine = create_engine(url, echo=echo, connect_args=connect_args)
        # autocommit=False: changes require explicit commit
        # autoflush=False: don't flush before every query
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        """Create tables for every model registered on Base."""
        # Importing the models registers their tables on Base.metadata
        from taskdesk import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """
    Dependency for getting database session.

    The session is closed after the request completes (via finally block),
    even if the handler raised.
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
