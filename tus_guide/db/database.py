import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from tus_guide.core.config import get_settings, Settings

logger = logging.getLogger(__name__)

settings = get_settings()


def _unicode_lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if isinstance(value, str) else value


def register_sqlite_functions(engine: Engine) -> None:
    """
    Swap SQLite's built-in LOWER, which only folds ASCII, for Python's
    str.lower on every new connection so Ü, Ö, Ş, Ç, Ğ fold like they do
    on PostgreSQL.
    """
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def build_engine(settings: Settings) -> Engine:
    """
    Create the engine for the configured database URL.

    SQLite connections are shared across the threadpool FastAPI runs sync
    code in, so same-thread checking is turned off. Other backends get a
    connection pool sized from settings.
    """
    if settings.is_sqlite:
        engine = create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
            echo=settings.db_echo,
        )
        register_sqlite_functions(engine)
        return engine
    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.db_echo,
    )


engine = build_engine(settings)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session(session_factory=None):
    """One transaction: commit on success, roll back on any error."""
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db():
    # Routes only read, so nothing is committed here
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> bool:
    try:
        with get_db_session() as db:
            return db.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError as e:
        logger.warning("Database connection failed: %s", e)
        return False


def fetch_all(db: Session, sql: str, params: dict = None) -> list:
    """
    Execute raw SQL on an open session and return rows as a list of dicts.
    """
    result = db.execute(text(sql), params or {})
    return [dict(row) for row in result.mappings().all()]
