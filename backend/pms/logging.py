"""Logging configuration using structlog.

Console output is colored key-value lines for local work; with
``LOG_JSON=true`` every record, including those of stdlib loggers such as
uvicorn and SQLAlchemy, is written as one JSON object per line.
"""

import logging
import sys

import structlog
from structlog.typing import Processor

from pms.config import settings

# Third-party loggers clamped to a quieter level than the root logger
QUIET_LOGGERS: dict[str, int] = {
    "asyncio": logging.INFO,
    "asyncpg": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    # SQLAlchemy logs every statement at INFO when echo=True
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
}


def parse_log_level(name: str) -> int:
    """Map a level name such as ``"debug"`` to its logging constant, INFO if unknown."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def build_renderer(json_logs: bool) -> Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True, exception_formatter=structlog.dev.plain_traceback)


def configure_logging(log_level: str | None = None, json_logs: bool | None = None) -> None:
    """Route structlog and stdlib logging through one handler on stdout.

    Arguments default to ``settings.log_level`` and ``settings.log_json``.
    """
    if log_level is None:
        log_level = settings.log_level
    if json_logs is None:
        json_logs = settings.log_json

    timestamper = (
        structlog.processors.TimeStamper(fmt="iso", utc=True)
        if json_logs
        else structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False)
    )
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # JSON output needs tracebacks as a string field; the console renderer formats them itself
    output_processors: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_logs:
        output_processors.append(structlog.processors.format_exc_info)
    output_processors.append(build_renderer(json_logs))

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=output_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(parse_log_level(log_level))

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


_configured = False


def setup_logging() -> None:
    """Setup logging once. Safe to call multiple times."""
    global _configured
    if not _configured:
        configure_logging()
        _configured = True
