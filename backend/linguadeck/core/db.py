import logging
import re
import sqlite3
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlmodel import Session, SQLModel, create_engine

from .config import get_config
from .exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

config = get_config()

connect_args = {"check_same_thread": False} if "sqlite" in config.database.url else {}
engine = create_engine(config.database.url, echo=False, connect_args=connect_args)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ANN001
    # Flashcard and history cleanup relies on ON DELETE CASCADE
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db(bind: Engine | None = None) -> None:
    # Import models to register them with SQLModel metadata
    from ..models import content, flashcard  # noqa: F401

    bind = bind or engine
    cfg = get_config()
    if bind is engine and "sqlite" in cfg.database.url:
        match = re.search(r"sqlite:///(.+)", cfg.database.url)
        if match and match.group(1) != ":memory:":
            Path(match.group(1)).parent.mkdir(parents=True, exist_ok=True)

    SQLModel.metadata.create_all(bind)
    _seed_languages(bind)


def _seed_languages(bind: Engine) -> None:
    from ..models.content import Language

    with Session(bind) as session:
        added = 0
        for seed in get_config().languages:
            if session.get(Language, seed.code) is None:
                session.add(Language(code=seed.code, name=seed.name, direction=seed.direction))
                added += 1
        if added:
            session.commit()
            logger.info("Seeded %d language profile(s)", added)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@contextmanager
def storage_guard(session: Session, action: str) -> Iterator[None]:
    """Roll back and raise StorageUnavailable when the database cannot be reached."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        session.rollback()
        logger.error("Storage unavailable during %s: %s", action, exc)
        raise StorageUnavailable(f"Storage unavailable during {action}") from exc
