"""Logging configuration."""

from __future__ import annotations

import logging

from flask import Flask

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Third-party loggers that are noisy at INFO/DEBUG.
_QUIET_LOGGERS = ("sqlalchemy.engine", "urllib3", "botocore", "boto3")


def configure_logging(app: Flask) -> None:
    """Configure plain-text logs for the draw service.

    Draw state transitions, provider calls and email sends all log through
    module-level ``club_lottery.*`` loggers, so the package level follows
    ``LOG_LEVEL`` while third-party libraries stay at WARNING.
    """

    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("club_lottery").setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
