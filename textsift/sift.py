"""
textsift - Entry Points

Logging setup, YAML configuration loading and a one-call sifting helper
for host applications.

Usage:
    from textsift.sift import setup_logging, load_config, sift_text

    setup_logging(verbose=True)
    config = load_config("config.yaml")
    print(sift_text(document, config))
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger
from pydantic import ValidationError

from .modules.pipeline import SiftPipeline
from .modules.schemas import SiftConfig


LOG_PACKAGE = "textsift"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>textsift</magenta>.<cyan>{module}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    verbose: bool = False,
    log_file: Optional[str] = None,
    package_only: bool = True,
):
    """
    Configure logging with loguru.

    With package_only (the default) both sinks only receive records emitted
    from textsift modules, so a host application's own logging is untouched
    by the sifting sinks. Per-chunk diagnostics are DEBUG and only reach the
    console when verbose is set.
    """
    logger.remove()  # Remove default handler

    record_filter = LOG_PACKAGE if package_only else None

    # Console handler
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        colorize=True,
        filter=record_filter,
    )

    # File handler
    if log_file:
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            filter=record_filter,
            rotation="10 MB",
            retention="7 days",
        )


def load_config(config_path: str = "config.yaml") -> SiftConfig:
    """Load sifting options from a YAML file, falling back to defaults."""
    config_file = Path(config_path)

    if not config_file.exists():
        logger.warning(f"Config file not found: {config_path}. Using defaults.")
        return SiftConfig()

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        config = SiftConfig.model_validate(raw.get("sift", raw))
        logger.info(f"Loaded configuration from: {config_path}")
        return config
    except (OSError, yaml.YAMLError, ValidationError, AttributeError) as e:
        logger.error(f"Error loading config: {e}")
        return SiftConfig()


def sift_text(text: str, config: Optional[SiftConfig] = None) -> str:
    """Run the full pipeline over one document."""
    return SiftPipeline(config).run(text)
