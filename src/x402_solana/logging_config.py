"""
Logging configuration for the x402 Solana SDK
"""

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)-8s %(name)s %(filename)s:%(lineno)d %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers that log every RPC round trip at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")


def resolve_level(level: int | str | None = None) -> int:
    """Resolve a logging level from an int, a level name or X402_LOG_LEVEL."""
    if level is None:
        level = os.getenv("X402_LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(level: int | str | None = None, quiet_transport: bool = True) -> None:
    """
    Configure root logging with timestamp, file and line number information.

    Args:
        level: Logging level, level name, or None to read X402_LOG_LEVEL
        quiet_transport: Raise httpx/httpcore loggers to WARNING
    """
    resolved = resolve_level(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if quiet_transport:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(resolved, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name (typically __name__)"""
    return logging.getLogger(name)
