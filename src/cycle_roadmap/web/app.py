"""Flask application factory for the Cycle Roadmap JSON API."""

import logging

from flask import Flask

from cycle_roadmap.config import VIEW_CYCLE_OVERVIEW, Config
from cycle_roadmap.view_filters import ViewFilterManager


def create_app(
    config: Config | None = None,
    manager: ViewFilterManager | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Each app owns its own ViewFilterManager so independent app instances never
    share filter state. Without an explicit config the routes read
    ~/.cycle-roadmap/config.toml on every request.
    """
    app = Flask(__name__)

    app.config["SECRET_KEY"] = "cycle-roadmap-local-dev"
    app.config["CYCLE_ROADMAP_CONFIG"] = config

    if config is not None:
        logging.basicConfig(level=config.logging_level)

    default_view = config.default_view if config is not None else VIEW_CYCLE_OVERVIEW
    app.extensions["view_filters"] = manager or ViewFilterManager(initial_view=default_view)

    from cycle_roadmap.web.routes import bp
    app.register_blueprint(bp)

    return app
