# backend/ferreteria/__init__.py
from flask import Flask, current_app, request
from werkzeug.exceptions import InternalServerError

from .config import Config, engine_options
from .extensions import db, migrate


def register_error_handlers(app: Flask) -> None:
    """
    JSON bodies for failures that any route can hit.

    Connectivity is reported apart from everything else so the client can
    show "no connection" instead of a generic failure.
    """
    from .services.store_guard import ConnectivityError, QueryError, StoreError
    from .services.sales_service import SaleError

    @app.errorhandler(StoreError)
    def handle_store_error(e: StoreError):
        body = {"error": str(e)}
        if isinstance(e, ConnectivityError):
            current_app.logger.warning("Store unreachable: %s", e)
            body["no_connection"] = True
        elif isinstance(e, QueryError):
            body["retryable"] = True
        if e.details:
            body["details"] = e.details
        return body, e.status_code

    @app.errorhandler(SaleError)
    def handle_sale_error(e: SaleError):
        body = {"error": str(e)}
        if e.details:
            body["details"] = e.details
        return body, e.status_code

    @app.errorhandler(InternalServerError)
    def handle_unexpected(e: InternalServerError):
        original = getattr(e, "original_exception", None)
        if original is not None:
            current_app.logger.exception("Unhandled error on %s %s", request.method, request.path, exc_info=original)
        return {"error": "Internal server error"}, 500


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Engines are built in init_app, so timeouts must be set before it
    app.config.setdefault(
        "SQLALCHEMY_ENGINE_OPTIONS",
        engine_options(app.config["SQLALCHEMY_DATABASE_URI"], app.config["STORE_TIMEOUT_SECONDS"]),
    )

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.dashboard import dashboard_bp
    from .routes.users import users_bp
    from .routes.products import products_bp
    from .routes.inventory import inventory_bp
    from .routes.sales import sales_bp
    from .routes.accounting import accounting_bp
    from .routes.suppliers import suppliers_bp
    from .routes.logs import logs_bp
    from .routes.alerts import alerts_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(accounting_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(logs_bp)
    app.register_blueprint(alerts_bp)

    register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "X-User-Id, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
