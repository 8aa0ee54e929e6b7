import logging
import os
from contextlib import contextmanager

from sqlmodel import SQLModel, create_engine, Session

logger = logging.getLogger(__name__)

_UNIT_OF_WORK = "backoffice.unit_of_work"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./backoffice.db")

# Normalize legacy postgres URL scheme if present
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

engine = create_engine(
    DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)


def init_db() -> None:
    # Register every table on the metadata before creating it.
    from backoffice import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def unit_of_work(session: Session):
    """Commit everything done inside the block, or nothing.

    Multi-step mutations (order + items + stock + movements + transaction)
    run inside one of these so a failure at any step leaves no partial rows.
    A nested block only flushes; the outermost one commits or rolls back.
    """
    if session.info.get(_UNIT_OF_WORK):
        yield session
        session.flush()
        return

    session.info[_UNIT_OF_WORK] = True
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.debug("unit of work rolled back", exc_info=True)
        raise
    finally:
        session.info.pop(_UNIT_OF_WORK, None)


def lock_for_update(statement):
    """Row-level lock for read-modify-write; SQLite ignores FOR UPDATE."""
    return statement.with_for_update()
