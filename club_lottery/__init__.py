"""Club lottery draw service (Flask application package)."""

from __future__ import annotations

from typing import Any

from dotenv import load_dotenv
from flask import Flask


def create_app(overrides: dict[str, Any] | None = None) -> Flask:
    """Application factory.

    Args:
        overrides: config values applied on top of the environment config.

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from club_lottery.config import get_config
    from club_lottery.db import init_db
    from club_lottery.error_handlers import register_error_handlers
    from club_lottery.extensions import init_services
    from club_lottery.logging_config import configure_logging
    from club_lottery.routes.draws import draws_bp
    from club_lottery.routes.entries import entries_bp
    from club_lottery.routes.health import health_bp
    from club_lottery.routes.notifications import notifications_bp

    app = Flask(__name__)
    app.config.from_object(get_config())
    if overrides:
        app.config.update(overrides)

    configure_logging(app)
    init_db(app)
    init_services(app)
    register_error_handlers(app)

    app.register_blueprint(health_bp)
    app.register_blueprint(draws_bp)
    app.register_blueprint(entries_bp)
    app.register_blueprint(notifications_bp)

    return app
