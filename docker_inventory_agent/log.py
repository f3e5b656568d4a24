"""Logging setup for the agent."""

import logging
import sys

ROOT_LOGGER = "docker_inventory_agent"

LEVELS = {
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class PlainFormatter(logging.Formatter):
    """Formats records as ``[LEVEL] message``."""

    PREFIXES = {
        logging.DEBUG: "[DEBUG]",
        logging.INFO: "[INFO]",
        logging.WARNING: "[WARN]",
        logging.ERROR: "[ERROR]",
        logging.CRITICAL: "[CRITICAL]",
    }

    def format(self, record):
        prefix = self.PREFIXES.get(record.levelno, "[LOG]")
        message = f"{prefix} {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def parse_level(name, default=logging.INFO):
    """Map a configured level name (e.g. ``"info"``) to a logging level."""
    if not name:
        return default
    return LEVELS.get(name.strip().lower(), default)


def setup_logging(level=logging.INFO, stream=None):
    """Install a single stderr handler on the agent's root logger.

    Args:
        level: Logging level for the agent loggers
        stream: Output stream (default: stderr)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(PlainFormatter())
    logger.addHandler(handler)
    return logger
