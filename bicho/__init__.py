"""Flask application package."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dotenv import load_dotenv
from flask import Flask


def create_app(overrides: Mapping[str, Any] | None = None) -> Flask:
    """Application factory.

    Args:
        overrides: config keys applied on top of the environment config
            (used by tests to point at a temporary database).

    Returns:
        Configured Flask application.
    """
    load_dotenv()

    from bicho.config import get_config
    from bicho.db import init_db
    from bicho.error_handlers import register_error_handlers
    from bicho.logging_config import configure_app_logging
    from bicho.routes.health import health_bp
    from bicho.routes.lotteries import lotteries_bp
    from bicho.routes.overdue import overdue_bp
    from bicho.routes.results import results_bp
    from bicho.routes.scrape import scrape_bp

    app = Flask(__name__)
    app.config.from_object(get_config())
    if overrides:
        app.config.update(dict(overrides))

    configure_app_logging(app)
    init_db(app)
    register_error_handlers(app)

    app.register_blueprint(health_bp)
    app.register_blueprint(lotteries_bp)
    app.register_blueprint(results_bp)
    app.register_blueprint(overdue_bp)
    app.register_blueprint(scrape_bp)

    return app
