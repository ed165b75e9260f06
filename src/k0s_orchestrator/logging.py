"""Logging configuration for the orchestrator.

Everything goes through loguru. Pipeline runs bind ``cluster``, ``verb`` and
``run_id`` with ``logger.contextualize``; records carrying them are prefixed
with the run they belong to, so the interleaved output of several runs stays
readable. Standard library loggers (uvicorn, SQLAlchemy, alembic) are routed
into loguru by ``InterceptHandler``.
"""

import logging
import sys
from collections.abc import Iterable

from loguru import logger

SERVER_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
CLI_FORMAT = "<level>{level: <8}</level> | "

THIRD_PARTY_LOGGERS = ("httpcore", "httpx", "urllib3", "asyncio", "uvicorn", "uvicorn.access", "uvicorn.error")
SQLALCHEMY_LOGGERS = ("sqlalchemy", "sqlalchemy.engine", "sqlalchemy.engine.base", "sqlalchemy.dialects", "sqlalchemy.pool")


class InterceptHandler(logging.Handler):
    """Intercept standard logging messages toward loguru."""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logged message originated
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _formatter(prefix: str):
    def format_record(record) -> str:
        extra = record["extra"]
        run = ""
        if "cluster" in extra:
            run = "<cyan>{extra[cluster]}</cyan>"
            if "verb" in extra:
                run += "/{extra[verb]}"
            if "run_id" in extra:
                run += " <dim>{extra[run_id]}</dim>"
            run += " | "
        return prefix + run + "<level>{message}</level>\n{exception}"

    return format_record


def route_to_loguru(names: Iterable[str], level: str | int | None = None) -> None:
    """Replace the handlers of the named standard loggers with ``InterceptHandler``."""
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
        if level is not None:
            std_logger.setLevel(level)


def setup_logging(log_level: str):
    """Configure loguru logging for the server.

    Args:
        log_level: Log level to use (from settings, which handles env vars and CLI args).
    """
    log_level = log_level.upper()

    logger.remove()
    logger.add(sys.stderr, format=_formatter(SERVER_FORMAT), level=log_level, colorize=True)
    logger.info(f"Log level set to: {log_level}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    route_to_loguru(list(logging.Logger.manager.loggerDict))
    route_to_loguru(THIRD_PARTY_LOGGERS, level=log_level)


def setup_cli_logging(log_level: str = "INFO"):
    """Compact format for the command line: level and message, no timestamps."""
    logger.remove()
    logger.add(sys.stderr, format=_formatter(CLI_FORMAT), level=log_level.upper(), colorize=True)


def setup_sqlalchemy_logging():
    """Configure SQLAlchemy logging to use loguru."""
    route_to_loguru(SQLALCHEMY_LOGGERS)
