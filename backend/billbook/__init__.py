# backend/billbook/__init__.py
from flask import Flask, json, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate


# Status returned for database errors, by error category
_CATEGORY_STATUS = {
    "DuplicateRecord": 409,
    "MissingReference": 400,
    "MissingRequiredField": 400,
    "InvalidValue": 400,
    "InvalidInput": 400,
    "NotFound": 404,
    "PermissionDenied": 403,
    "AccessDenied": 403,
    "AuthFailed": 401,
    "TransientRetryable": 503,
    "Timeout": 503,
    "NetworkError": 503,
}

_HTTP_MESSAGES = {
    400: "Bad request",
    404: "Not found",
    405: "Method not allowed",
    413: "Upload is too large",
}


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.settings import settings_bp
    from .routes.company import company_bp
    from .routes.products import products_bp
    from .routes.clients import clients_bp
    from .routes.documents import invoices_bp, bills_bp
    from .routes.reports import reports_bp
    from .routes.search import search_bp
    from .routes.ledger import ledger_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(company_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(bills_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(search_bp)
    app.register_blueprint(ledger_bp)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(exc):
        from .services.error_service import classify_error, log_error_in_dev

        db.session.rollback()
        log_error_in_dev(request.path, exc)
        classified = classify_error(exc)
        status = _CATEGORY_STATUS.get(classified.category.value, 500)
        if status == 500:
            app.logger.exception("Unhandled database error on %s %s", request.method, request.path)
        return jsonify({"error": classified.message, "category": classified.category.value}), status

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        # keeps headers such as Allow on 405
        response = exc.get_response()
        response.data = json.dumps({"error": _HTTP_MESSAGES.get(exc.code, exc.name)})
        response.content_type = "application/json"
        return response

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        db.session.rollback()
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ORIGINS", ()))
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    from .cli import register_commands
    register_commands(app)

    return app
