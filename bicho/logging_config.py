"""Logging configuration."""

from __future__ import annotations

import logging

from flask import Flask

_NOISY_LOGGERS = ("sqlalchemy.engine", "urllib3.connectionpool", "pymongo")


def configure_logging(level_name: str = "INFO") -> None:
    """Configure plain stdlib logging shared by the app and the CLI scripts."""

    level = getattr(logging, str(level_name).upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_app_logging(app: Flask) -> None:
    configure_logging(str(app.config.get("LOG_LEVEL", "INFO")))
