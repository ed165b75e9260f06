import logging
import sys

from alembic import context
from dotenv import load_dotenv
from loguru import logger
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel

load_dotenv()

from k0s_orchestrator.logging import InterceptHandler, route_to_loguru  # noqa: E402

# Register the cluster_records table with SQLModel metadata
from k0s_orchestrator.models import db_model  # noqa: F401, E402
from k0s_orchestrator.settings import get_settings  # noqa: E402

settings = get_settings()

logger.remove()
logger.add(sys.stderr, level=settings.log_level)

SQL_ECHO = settings.sql_log
logger.info(f"SQL echo is {'enabled' if SQL_ECHO else 'disabled'}")

config = context.config

if not settings.database_url:
    raise RuntimeError("K0S_ORCHESTRATOR_DATABASE_URL must be set to run migrations")

# The application settings are the single source of the database URL
config.set_main_option("sqlalchemy.url", settings.database_url)

# Route alembic and SQLAlchemy logging through loguru
logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
route_to_loguru(list(logging.root.manager.loggerDict))

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL without a connection."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        logger.info("Starting offline migration")
        context.run_migrations()
        logger.success("Offline migration completed successfully")


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against the configured database."""
    engine_config = config.get_section(config.config_ini_section, {})
    engine_config["sqlalchemy.echo"] = str(SQL_ECHO).lower()

    connectable = engine_from_config(
        engine_config,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        logger.info("Database connection established")
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            logger.info("Starting online migration")
            context.run_migrations()
            logger.success("Online migration completed successfully")


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
