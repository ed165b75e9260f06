"""Alembic helpers for the cluster record schema."""

import os
from typing import Any

import alembic.command
import alembic.config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from .connection import borrow_db_session

# Repository root: database/ -> k0s_orchestrator/ -> src/ -> root
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))


class AlembicManager:
    """Schema revision inspection and migration for the orchestrator database."""

    def __init__(self):
        self.alembic_cfg: alembic.config.Config | None = None
        self._init_alembic_config()

    def _init_alembic_config(self) -> None:
        """Load alembic.ini from the working directory or the project root.

        ``script_location`` is rewritten to an absolute path so migrations run
        from any directory.
        """
        for root in (os.getcwd(), PROJECT_ROOT):
            alembic_ini_path = os.path.join(root, "alembic.ini")
            if os.path.exists(alembic_ini_path):
                break
        else:
            logger.error("Alembic configuration file not found in cwd or project root")
            return

        logger.trace(f"Loading alembic configuration from: {alembic_ini_path}")
        self.alembic_cfg = alembic.config.Config(alembic_ini_path)
        migrations_path = os.path.join(root, "migrations")
        if os.path.exists(migrations_path):
            self.alembic_cfg.set_main_option("script_location", migrations_path)

    def get_current_revision(self) -> str | None:
        """Revision recorded in the database, or None for an empty database."""
        with borrow_db_session() as session:
            try:
                context = MigrationContext.configure(session.connection())
                current_rev = context.get_current_revision()
            except SQLAlchemyError as e:
                logger.error(f"Failed to get current revision: {e}")
                return None
        logger.trace(f"Current database revision: {current_rev}")
        return current_rev

    def get_head_revision(self) -> str | None:
        """Newest revision available in the migration scripts."""
        if not self.alembic_cfg:
            return None
        head_rev = ScriptDirectory.from_config(self.alembic_cfg).get_current_head()
        logger.trace(f"Head revision from scripts: {head_rev}")
        return head_rev

    def perform_migration(self, target: str = "head") -> bool:
        """Upgrade the database schema.

        Returns:
            True if migration successful, False otherwise
        """
        if not self.alembic_cfg:
            logger.error("Alembic configuration not initialized")
            return False

        try:
            logger.info(f"Starting database migration to '{target}'")
            alembic.command.upgrade(self.alembic_cfg, target)
            logger.info(f"Database migration to '{target}' completed successfully")
            return True
        except (OSError, ValueError, RuntimeError, SQLAlchemyError) as e:
            logger.error(f"Migration failed: {e}")
            return False

    def validate_schema_state(self) -> tuple[str, dict[str, Any], bool]:
        """Compare the database revision with the scripts' head.

        Returns:
            Tuple of (message, details, is_current)
        """
        if not self.alembic_cfg:
            return ("Alembic configuration not available", {}, False)

        current_rev = self.get_current_revision()
        head_rev = self.get_head_revision()
        details = {"current_revision": current_rev, "head_revision": head_rev}

        if current_rev is None:
            return ("Database schema has not been created", details, False)
        if current_rev != head_rev:
            return (f"Database schema is out of date. Current: {current_rev}, Head: {head_rev}", details, False)
        return ("Database schema is at the latest version", details, True)
