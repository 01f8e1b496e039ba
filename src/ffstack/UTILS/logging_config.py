"""
Logging configuration: structlog on top of the standard logging handlers.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from structlog.stdlib import BoundLogger, LoggerFactory, ProcessorFormatter

LOG_FILENAME = "ffstack.log"


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[Union[Path, str]] = None,
    max_file_size_mb: int = 10,
) -> None:
    """
    Configures the ``ffstack`` logger: console output on stderr and, when
    ``log_dir`` is given, a rotating JSON log file.

    Args:
        log_level: Level name, e.g. "INFO" or "DEBUG".
        log_dir: Directory for ffstack.log.
        max_file_size_mb: Size at which the log file is rotated.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    ffstack_logger = logging.getLogger("ffstack")
    ffstack_logger.handlers.clear()
    ffstack_logger.setLevel(level)
    ffstack_logger.propagate = False

    renderer = (
        structlog.dev.ConsoleRenderer()
        if sys.stderr.isatty()
        else structlog.processors.KeyValueRenderer(key_order=["event"])
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ProcessorFormatter(processor=renderer))
    ffstack_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILENAME,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=1,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(ProcessorFormatter(processor=structlog.processors.JSONRenderer()))
        ffstack_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso"),
            ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)
