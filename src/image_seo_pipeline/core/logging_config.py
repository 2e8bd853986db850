"""Centralized logging configuration for the image SEO pipeline."""

import os
import sys
import logging
from typing import Optional


def setup_logger(
    name: str = "image-seo-pipeline",
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Setup centralized logging with environment variable configuration.

    Args:
        name: Logger name (defaults to "image-seo-pipeline")
        level: Log level override (defaults to env var or INFO)
        format_type: Logging format ("structured" or "simple")

    Returns:
        Configured logger instance

    Environment Variables:
        LOG_LEVEL: Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_FORMAT: Set format type ("structured" or "simple")
    """
    logger = logging.getLogger(name)

    # Determine log level from parameter, env var, or default
    if level:
        log_level = getattr(logging, level.upper(), logging.INFO)
    else:
        env_level = os.getenv("LOG_LEVEL", "INFO").upper()
        log_level = getattr(logging, env_level, logging.INFO)

    logger.setLevel(log_level)

    # Avoid duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)

        env_format = os.getenv("LOG_FORMAT", format_type).lower()

        if env_format == "structured":
            formatter = logging.Formatter(
                "%(asctime)s | %(name)s | %(levelname)-8s | "
                "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )

        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # Prevent duplicate log messages
    logger.propagate = False
    return logger


def get_logger(name: str = "image-seo-pipeline") -> logging.Logger:
    """
    Get a logger instance with consistent configuration.

    Child names are namespaced under "image-seo-pipeline" so that
    ``--debug`` on the CLI reaches every component.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    if name != "image-seo-pipeline" and not name.startswith("image-seo-pipeline."):
        name = f"image-seo-pipeline.{name}"
    return setup_logger(name)


def set_log_level(level: str) -> None:
    """Change the level of every pipeline logger created so far."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    for logger_name in list(logging.root.manager.loggerDict):
        if logger_name == "image-seo-pipeline" or logger_name.startswith(
            "image-seo-pipeline."
        ):
            logging.getLogger(logger_name).setLevel(log_level)


# Create default logger instance
logger = setup_logger()
