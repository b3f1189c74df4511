"""
Logging utilities for the warehouse deck generator.

Provides centralized logging configuration and convenience methods that
attach key/value context (warehouse ids, inputs, coordinates) to each line.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional


# Flag to track if logger has been initialized to ensure idempotency
_logger_initialized = False


def initialize_logger(log_level: str = "INFO", log_file: Optional[str] = "logs/app.log") -> None:
    """
    Initialize the root logger with a console handler and an optional file handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file, or None for console-only logging
    """
    global _logger_initialized

    # Ensure idempotency - don't re-initialize if already done
    if _logger_initialized:
        return

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers to prevent duplicates
    root_logger.handlers.clear()

    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    _logger_initialized = True

    root_logger.info(f"Logger initialized with level {log_level}, file: {log_file or 'none'}")


def format_message(message: str, context: Dict[str, Any]) -> str:
    """
    Append context to a message as ``[key=value, ...]``.

    Args:
        message: Human-readable message
        context: Extra details, rendered in insertion order

    Returns:
        The formatted line
    """
    if not context:
        return message
    details = ", ".join(f"{key}={value!r}" for key, value in context.items())
    return f"{message} [{details}]"


def log_debug(message: str, **context: Any) -> None:
    """Log a debug message with optional context."""
    logging.getLogger().debug(format_message(message, context))


def log_info(message: str, **context: Any) -> None:
    """
    Log an info message.

    Args:
        message: Message to log
        **context: Key/value details appended to the message
    """
    logging.getLogger().info(format_message(message, context))


def log_warning(message: str, **context: Any) -> None:
    """
    Log a warning message.

    Args:
        message: Message to log
        **context: Key/value details appended to the message
    """
    logging.getLogger().warning(format_message(message, context))


def log_error(message: str, **context: Any) -> None:
    """
    Log an error message.

    Args:
        message: Message to log
        **context: Key/value details appended to the message
    """
    logging.getLogger().error(format_message(message, context))
