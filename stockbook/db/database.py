import logging
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stockbook.core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Process-wide store handle: one engine (connection pool) and its session factory.

    Created once at startup and disposed on shutdown; sessions are handed to
    services explicitly instead of being reached through module globals.
    """

    def __init__(self, url: str | None = None) -> None:
        self.url = url or settings.database_url
        self.is_sqlite = self.url.startswith("sqlite")

        if self.is_sqlite:
            engine_kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in self.url or self.url in ("sqlite://", "sqlite+pysqlite://"):
                # Every session must see the same in-memory database.
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs = {
                "connect_args": {"sslmode": settings.db_sslmode},
                "pool_size": settings.db_pool_size,
                "pool_pre_ping": True,
                "pool_recycle": settings.db_pool_recycle_seconds,
            }

        self.engine = create_engine(self.url, **engine_kwargs)
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        # Importing the models registers their tables on Base.metadata.
        import stockbook.models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def ping(self) -> bool:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        logger.info("closing database connection pool")
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
