"""
Logging Configuration
Sets up the package logger for the CLI and the bootstrap script.
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "spheremesh"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    namespace: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """
    Route one logger namespace to stdout and, optionally, to a file.

    Calling it again replaces the handlers installed earlier, so a second CLI
    run inside one process (tests) does not print every line twice.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file (overwritten).
        namespace: Logger to configure; child loggers propagate into it.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(namespace)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(f"Logging initialized ({logging.getLevelName(level)}, file={log_file}).")
    return logger


def parse_level(name: str) -> int:
    """Map a level name such as 'debug' or 'WARNING' to its logging constant."""
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return level
