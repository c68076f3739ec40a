"""
logging_config.py - Shared logging setup for the reconciliation engine.

Every module logs through `get_logger(__name__)`; only the outer surfaces
(CLI and HTTP API) call `setup_logging`.
"""

from __future__ import annotations

import logging
import os
import sys

TEXT_FORMAT = "%(asctime)s [%(name)-16s] %(levelname)-7s %(message)s"
JSON_FORMAT = (
    '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
    '"module":"%(name)s","message":"%(message)s"}'
)


def _env_json_logs() -> bool:
    return os.getenv("RECON_LOG_JSON", "").strip().lower() in {"1", "true", "yes", "on"}


def setup_logging(level: int = logging.INFO, json_format: bool | None = None) -> None:
    """Configure the root logger.

    Args:
        level: Logging level.
        json_format: Emit JSON-like log lines. When None, the RECON_LOG_JSON
            environment variable decides.
    """
    if json_format is None:
        json_format = _env_json_logs()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter(
        JSON_FORMAT if json_format else TEXT_FORMAT,
        datefmt="%H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
