# backend/barpos/__init__.py
import logging
import time

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Config, engine_options_for
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.config.setdefault(
        "SQLALCHEMY_ENGINE_OPTIONS",
        engine_options_for(app.config["SQLALCHEMY_DATABASE_URI"], app.config),
    )

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))
    logging.getLogger("barpos").setLevel(app.logger.level)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.sessions import sessions_bp
    from .routes.tables import tables_bp
    from .routes.products import products_bp, categories_bp
    from .routes.credit_clients import credit_clients_bp, credit_payments_bp
    from .routes.orders import orders_bp
    from .routes.payments import payments_bp
    from .routes.absences import absences_bp
    from .routes.manager import manager_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(tables_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(credit_clients_bp)
    app.register_blueprint(credit_payments_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(absences_bp)
    app.register_blueprint(manager_bp)

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    @app.after_request
    def add_security_headers(response):
        if request.path.startswith("/api"):
            response.headers.setdefault("Cache-Control", "no-store")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        return response

    @app.after_request
    def log_api_request(response):
        if request.path.startswith("/api"):
            started = g.get("request_started")
            elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0
            app.logger.info("%s %s %s in %dms", request.method, request.path, response.status_code, elapsed_ms)
        return response

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        body = {"error": "Internal server error"}
        if app.config.get("ENV") == "dev" and not app.config.get("TESTING"):
            body["detail"] = str(e)
        return jsonify(body), 500

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
