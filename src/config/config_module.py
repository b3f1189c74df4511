"""
Configuration management module for the warehouse deck generator.

Handles loading environment variables from a .env file, accessing
configuration values (raw or typed), and validating required keys.
"""

import os
import logging
from typing import Any, Callable, List, Optional, TypeVar
from dotenv import load_dotenv


T = TypeVar("T")


class ConfigError(Exception):
    """Custom exception for configuration-related errors."""
    pass


def load_config(env_path: str = ".env") -> None:
    """
    Load environment variables from a .env file.

    Args:
        env_path: Path to the .env file (default: ".env")
    """
    logger = logging.getLogger(__name__)

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)
        logger.info(f"Loaded configuration from {env_path}")
    else:
        logger.warning(f"Configuration file {env_path} not found, using system environment variables only")


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value from environment variables.

    Args:
        key: Environment variable key
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    logger = logging.getLogger(__name__)

    value = os.getenv(key)

    if value is None:
        if default is not None:
            logger.debug(f"Configuration key '{key}' not found, using default value: {default}")
            return default
        logger.warning(f"Configuration key '{key}' not found and no default provided")

    return value


def get_typed_config(key: str,
                     default: Optional[T],
                     cast: Callable[[str], T]) -> Optional[T]:
    """
    Get a configuration value converted with ``cast``.

    Missing and blank values fall back to ``default`` without a warning,
    since typed keys are optional tuning knobs.

    Args:
        key: Environment variable key
        default: Value used when the key is missing or blank
        cast: Converter such as ``int`` or ``float``

    Returns:
        Converted value or default

    Raises:
        ConfigError: If the value cannot be converted
    """
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default

    try:
        return cast(raw.strip())
    except (TypeError, ValueError) as e:
        message = f"Invalid value for configuration key '{key}': {raw!r} ({e})"
        logging.getLogger(__name__).error(message)
        raise ConfigError(message)


def validate_config(required_keys: List[str]) -> None:
    """
    Validate that all required configuration keys are present and non-empty.

    Args:
        required_keys: List of required environment variable keys

    Raises:
        ConfigError: If any required key is missing or empty
    """
    logger = logging.getLogger(__name__)
    missing_keys = []
    empty_keys = []

    for key in required_keys:
        value = os.getenv(key)
        if value is None:
            missing_keys.append(key)
        elif value.strip() == "":
            empty_keys.append(key)

    if missing_keys or empty_keys:
        error_msg = "Configuration validation failed:"
        if missing_keys:
            error_msg += f" Missing keys: {', '.join(missing_keys)}."
        if empty_keys:
            error_msg += f" Empty keys: {', '.join(empty_keys)}."

        logger.error(error_msg)
        raise ConfigError(error_msg)

    logger.info(f"Configuration validation passed for keys: {', '.join(required_keys)}")
