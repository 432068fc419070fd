from collections.abc import Callable

from sqlalchemy import Engine
from sqlmodel import Session, SQLModel, create_engine

from .config import Settings, get_settings

SessionFactory = Callable[[], Session]


def build_engine(settings: Settings | None = None, url: str | None = None) -> Engine:
    settings = settings or get_settings()
    database_url = url or settings.DATABASE_URL
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are used from worker threads as well as request handlers
        connect_args = {"check_same_thread": False, "timeout": 30}
    return create_engine(database_url, echo=settings.SQL_ECHO, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    # Tables must be registered on the metadata before create_all
    from linestart.infrastructure.database import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def session_factory(engine: Engine) -> SessionFactory:
    def _factory() -> Session:
        return Session(engine, expire_on_commit=False)

    return _factory
