"""Logging utilities for the Tenant Migration Tool."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

DEFAULT_CONSOLE_FORMAT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss}</green> | '
    '<level>{level: <8}</level> | '
    '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
    '<level>{message}</level>'
)

FILE_FORMAT = (
    '{time:YYYY-MM-DD HH:mm:ss} | '
    '{level: <8} | '
    '{name}:{function}:{line} | '
    '{extra} | '
    '{message}'
)


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """Setup logging configuration using loguru.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        log_format: Optional custom console log format
    """
    # Remove default handler
    logger.remove()

    logger.add(
        sys.stderr,
        format=log_format or DEFAULT_CONSOLE_FORMAT,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    # The file sink keeps bound and run context as an audit trail
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=level,
            rotation='10 MB',
            retention='30 days',
            compression='gz',
            backtrace=True,
            diagnose=False,
        )

    logger.debug(f'Logging initialized with level: {level}')
    if log_file:
        logger.info(f'Log file: {log_file}')


def get_logger(name: str):
    """Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logger.bind(name=name)


def run_context(user_id: str, source_tenant_id: str, destination_tenant_id: str):
    """Tag every record logged inside the block with the migration it belongs to.

    Example:
        >>> with run_context('U1', 'T1', 'T2'):
        ...     logger.info('Detecting orphaned resources')
    """
    return logger.contextualize(
        user_id=user_id,
        source_tenant_id=source_tenant_id,
        destination_tenant_id=destination_tenant_id,
    )
