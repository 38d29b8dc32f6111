"""Logging setup for the dogfight simulation core.

Every module obtains its logger through ``get_logger(__name__)``. The
application (or a test harness) may call ``initialize_logging`` once to
install handlers from a YAML ``dictConfig`` file; without it, records go
through the standard library's default handling.

Typical usage:
    from dogfight.core.logging_system import get_logger, initialize_logging

    initialize_logging()  # packaged config/logging.yaml
    logger = get_logger(__name__)
    logger.info("Simulation started")
"""

import logging
import logging.config
from pathlib import Path
from typing import Any

import yaml

from dogfight.core.resource_path import get_config_path

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_initialized = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module.

    Args:
        name: Logger name, usually ``__name__``.

    Returns:
        Standard library logger.
    """
    return logging.getLogger(name)


def initialize_logging(config_path: str | None = None, level: str | None = None) -> None:
    """Configure logging handlers from a YAML dictConfig file.

    Falls back to a console handler when the file is missing or invalid.

    Args:
        config_path: Path to a logging YAML file. Defaults to the packaged
            ``config/logging.yaml``.
        level: Optional root level override (e.g. "DEBUG").
    """
    global _initialized

    path = Path(config_path) if config_path else get_config_path("logging.yaml")
    config: dict[str, Any] | None = None

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logging.basicConfig(level=logging.INFO, format=DEFAULT_FORMAT)
            logging.getLogger(__name__).warning("Failed to read logging config %s: %s", path, e)
            config = None

    if config:
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(level=logging.INFO, format=DEFAULT_FORMAT)

    if level:
        logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    _initialized = True
    logging.getLogger(__name__).debug("Logging initialized from %s", path)


def is_initialized() -> bool:
    """Whether ``initialize_logging`` has run."""
    return _initialized
