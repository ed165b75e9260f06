"""Database configuration and connection setup.

The SQLModel engine is created lazily after application settings have been
loaded and possibly overridden by CLI flags, so importing this module never
fails when ``K0S_ORCHESTRATOR_DATABASE_URL`` is not yet set. The database is
only needed for persisted cluster records and PostgreSQL advisory locks.
"""

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlmodel import Session, create_engine, text
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from k0s_orchestrator.settings import get_settings

_engine = None  # type: ignore[var-annotated]


def _build_engine():  # type: ignore[return-value]
    """Create and return a new engine from current settings.

    Raises:
        ValueError: if database URL not configured.
    """
    settings = get_settings()
    database_url = settings.database_url
    if not database_url:
        raise ValueError("Database URL missing: provide K0S_ORCHESTRATOR_DATABASE_URL env or --database-url CLI argument")
    engine_local = create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        echo=settings.sql_log,
        connect_args={"connect_timeout": 10},
    )
    logger.info("SQL echo is {}", "enabled" if settings.sql_log else "disabled")
    return engine_local


def get_engine():  # type: ignore[return-value]
    """Return a singleton engine instance, creating it lazily."""
    global _engine
    if _engine is None:
        _engine = _build_engine()
    return _engine


def dispose_db() -> None:
    """Dispose of the database engine if it was created."""
    global _engine
    if _engine is not None:
        logger.info("Closing database connections")
        _engine.dispose()
        _engine = None


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
    retry=retry_if_exception_type(Exception),
    before_sleep=before_sleep_log(logger, "DEBUG"),
)
def create_session() -> Session:
    """Create a database session with retry logic.

    Connection failures dispose the engine so it is recreated on the next
    attempt. Callers own the returned session and must close it; advisory
    lock tokens keep theirs open for a whole pipeline run.

    Returns:
        Session: A new database session

    Raises:
        Exception: If all retry attempts fail
    """
    global _engine
    try:
        session = Session(get_engine())
        # Test the connection immediately
        session.execute(text("SELECT 1"))
        return session
    except Exception as e:
        if _engine is not None:
            logger.warning("Database connection failed, disposing engine for retry...")
            _engine.dispose()
            _engine = None
        logger.error("Failed to create database session: {}", e)
        raise


@contextmanager
def borrow_db_session() -> Generator[Session]:
    """Context manager for ad-hoc database usage.

    Example:
        with borrow_db_session() as session:
            session.exec(select(ClusterRecord))
    """
    session = create_session()
    session_id = id(session)

    try:
        yield session
    except Exception as e:  # noqa: BLE001
        logger.error("Error during database session {}: {}", session_id, e)
        raise
    finally:
        session.close()
        logger.trace("Database session {} closed and resources released", session_id)
