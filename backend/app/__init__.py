"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, so tests can build isolated
         app instances and Alembic can load metadata without a server.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Initialise SQLAlchemy via init_app()
  4. Register all route blueprints under /api/v1
  5. Register global error handlers (every failure leaves as the JSON envelope)

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic or db.create_all() inspects it.
"""

from __future__ import annotations

import logging
import traceback

from flask import Flask, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from backend.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Unknown names fall back to "development".
    """
    app = Flask(__name__)
    app.json.sort_keys = False

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    from backend.app.extensions import db
    db.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    with app.app_context():
        from backend.app.models import (  # noqa: F401
            expense,
            group,
            membership,
            split,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    app.logger.debug(
        "App created (config=%s, expense policy=%s)",
        config_name,
        app.config["EXPENSE_VALIDATION_POLICY"],
    )
    return app


def _configure_logging(app: Flask) -> None:
    """
    Sets the level for the app logger and for the `backend` package loggers
    used by the services (logging.getLogger(__name__)).
    """
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)

    package_logger = logging.getLogger("backend")
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s"
        ))
        package_logger.addHandler(handler)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    The url_prefix is set here so route files only carry the path relative
    to their resource (e.g. "/" and "/by-email"). Collection routes answer
    with or without the trailing slash.
    """
    app.url_map.strict_slashes = False

    from backend.app.routes.auth import auth_bp
    from backend.app.routes.expenses import expenses_bp
    from backend.app.routes.groups import groups_bp
    from backend.app.routes.users import users_bp

    app.register_blueprint(auth_bp,     url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp,    url_prefix="/api/v1/users")
    app.register_blueprint(groups_bp,   url_prefix="/api/v1/groups")
    # expenses_bp owns /expenses/<id> AND /groups/<id>/expenses.
    app.register_blueprint(expenses_bp, url_prefix="/api/v1")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → error envelope with the AppError's status
      ValidationError → first marshmallow error as MISSING_FIELD / INVALID_FIELD
                        (or the registered code carried as the message), 400
      HTTPException   → werkzeug errors (404 route, 405, bad JSON) in the envelope
      SQLAlchemyError → session rolled back, logged, INTERNAL_ERROR (500)
      Exception       → INTERNAL_ERROR (500); traceback logged, never returned
    """
    from backend.app.errors import AppError, ErrorCode
    from backend.app.extensions import db

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Returns ONE error: the first field in the messages dict. Nested
        messages (e.g. split.0.user_id) are followed down to the leaf and
        reported with a dotted field path.
        """
        field, raw_message = _first_validation_error(error.messages)
        known_codes = set(vars(ErrorCode).values())

        if raw_message in known_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field
        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({
            "error": {
                "code": (error.name or "HTTP_ERROR").upper().replace(" ", "_"),
                "message": error.description or error.name,
            }
        }), error.code or 500

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(error: SQLAlchemyError):
        db.session.rollback()
        app.logger.error(
            "Store error on %s %s: %s\n%s",
            request.method,
            request.path,
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "The data store could not complete the request.",
            }
        }), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """Adds CORS headers when DEBUG or TESTING is on, for local frontends."""

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response


def _first_validation_error(messages, prefix: str | None = None) -> tuple[str | None, str]:
    """
    Walks marshmallow's messages structure to the first leaf message.

    Returns (dotted field path or None for schema-level errors, message).
    """
    if isinstance(messages, dict):
        for key, value in messages.items():
            if key == "_schema":
                path = prefix
            else:
                path = f"{prefix}.{key}" if prefix else str(key)
            return _first_validation_error(value, path)
        return prefix, "Invalid input."
    if isinstance(messages, list):
        if not messages:
            return prefix, "Invalid input."
        return _first_validation_error(messages[0], prefix)
    return prefix, str(messages)


def _code_to_message(code: str) -> str:
    """Default message for a registered code used as a ValidationError message."""
    _messages = {
        "INVALID_ID": "The value is not a valid 24-character hexadecimal identifier.",
        "MISSING_FIELD": "A required field is missing.",
    }
    return _messages.get(code, "Invalid input.")
