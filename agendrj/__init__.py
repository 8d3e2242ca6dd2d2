# agendrj/__init__.py
import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .db import init_db
from .errors import AgendaError
from .formatters import register_filters
from .services import build_services
from .blueprints.auth import bp as auth_bp
from .blueprints.citizen import bp as citizen_bp
from .blueprints.operator_queue import bp as operator_bp
from .blueprints.admin_appointments import bp as admin_appointments_bp
from .blueprints.admin_locations import bp as admin_locations_bp
from .blueprints.admin_users import bp as admin_users_bp
from .blueprints.admin_settings import bp as admin_settings_bp

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config: dict | None = None, services=None):
    app = Flask(__name__)
    app.config.from_object(Config())
    if config:
        app.config.update(config)

    _configure_logging(app.config["LOG_LEVEL"])
    if app.config["DB_INIT"]:
        init_db(app.config["DB_CFG"], maxconn=app.config["DB_POOL_MAX"])

    # um conjunto de serviços (e espelhos) por processo
    app.extensions["agendrj"] = services or build_services(app.config)

    register_filters(app)

    @app.errorhandler(AgendaError)
    def handle_agenda_error(err: AgendaError):
        if err.status_code >= 500:
            logger.error("%s: %s", err.code, err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify({"ok": False, "error": err.name.lower().replace(" ", "_"),
                        "message": err.description}), err.code

    # Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(citizen_bp, url_prefix="/appointments")
    app.register_blueprint(operator_bp, url_prefix="/operator")
    app.register_blueprint(admin_appointments_bp, url_prefix="/admin")
    app.register_blueprint(admin_locations_bp, url_prefix="/admin")
    app.register_blueprint(admin_users_bp, url_prefix="/admin")
    app.register_blueprint(admin_settings_bp, url_prefix="/admin")
    return app
