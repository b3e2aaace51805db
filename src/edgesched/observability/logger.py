"""
observability/logger.py — EdgeSched Logging

One structlog pipeline for the whole scheduler. Records flow through stdlib
logging so every handler sees the same fields:

    timestamp · level · logger · event · task_id / executor (inside a run)

The log file under `log_dir` is always JSON. The console is optional and
renders either coloured key=value lines or JSON.

Usage:
    from edgesched.observability.logger import get_logger, setup_logging
    setup_logging(level="DEBUG", log_dir="/var/log/edgesched", json_format=True)
    log = get_logger(__name__)
    log.info("scheduler.task_retry", task_id="task_1", delay_s=5.0)
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional

import structlog

LOG_FILE_NAME = "edgesched.log"

# Fields every record gets, whether it came from structlog or plain logging.
_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=_SHARED_PROCESSORS,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────


def setup_logging(
    level: str = "INFO",
    log_dir: str | Path = "./data/logs",
    json_format: Optional[bool] = None,
    console_output: bool = True,
    max_bytes: int = 100 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Route structlog through stdlib logging. Safe to call again; the
    previous root handlers are replaced.

    json_format=None picks coloured output when stdout is a terminal and
    JSON when it is piped (systemd, docker logs).
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if json_format is None:
        json_format = not sys.stdout.isatty()

    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / LOG_FILE_NAME,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    handlers: list[logging.Handler] = [file_handler]

    if console_output:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(_formatter(
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(colors=True)
        ))
        handlers.append(console)

    for handler in handlers:
        handler.setLevel(numeric_level)
    logging.basicConfig(format="%(message)s", level=numeric_level, handlers=handlers, force=True)

    # abandoned runs make asyncio chatty at DEBUG
    logging.getLogger("asyncio").setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=_SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "edgesched", **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """Module logger, optionally pre-bound (e.g. component="monitor")."""
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def bind_task(task_id: str, executor: str) -> None:
    """
    Tag every log line of the current asyncio task with the run's ids.

    Each supervised run is its own asyncio task with its own context copy,
    so concurrent runs never leak ids into each other's lines.
    """
    structlog.contextvars.bind_contextvars(task_id=task_id, executor=executor)


def clear_task() -> None:
    structlog.contextvars.unbind_contextvars("task_id", "executor")
