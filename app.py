"""Flask application factory for the municipal complaint-intake service."""
import os
import time
import traceback
from typing import Mapping, Optional

import click
from flask import Flask, current_app, g, jsonify
from sqlalchemy import text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from models import USER_ROLES
from utils.errors import InvalidToken, ServiceError, StoreError, ValidationError
from utils.logger import init_logging
from utils.services import get_services, init_services
from extensions import db, migrate, login_manager, limiter

HTTP_ERROR_MESSAGES = {
    404: "not found",
    405: "method not allowed",
    413: "File too large. Max size is 5MB.",
    429: "Too many requests from this IP, please try again later",
}


def _server_error_response(app: Flask, error: Exception):
    """Generic body in production; message and trace when debugging."""
    body = {"status": "error", "message": "An error occurred"}
    if app.debug:
        body["message"] = str(error) or "Internal server error"
        body["stack"] = traceback.format_exception(type(error), error, error.__traceback__)
    return jsonify(body), 500


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def service_error(error: ServiceError):
        if isinstance(error, StoreError):
            db.session.rollback()
            app.logger.error("Store error", exc_info=error)
            return _server_error_response(app, error)
        if error.status_code >= 500:
            app.logger.error("%s: %s", type(error).__name__, error.message)
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        if error.code and error.code >= 400 and error.code not in (404, 405):
            app.logger.warning("%s %s", error.code, error.name)
        message = HTTP_ERROR_MESSAGES.get(error.code) or error.description or error.name
        return jsonify({"error": message}), error.code

    @app.errorhandler(Exception)
    def internal_error(error: Exception):
        db.session.rollback()
        app.logger.exception("500 Internal Server Error")
        return _server_error_response(app, error)


def register_auth(app: Flask) -> None:
    login_manager.init_app(app)
    # Stateless bearer tokens: no session cookies are issued.
    login_manager.session_protection = None
    # Flask-Login consults the remember cookie before the request loader; point it
    # at a name that is never issued so only the Authorization header counts.
    app.config["REMEMBER_COOKIE_NAME"] = "mycity_remember_unused"

    @login_manager.request_loader
    def load_user_from_request(req):
        header = req.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            g.auth_error = "missing token"
            return None
        try:
            return get_services().auth.verify(header[len("Bearer "):].strip())
        except InvalidToken as exc:
            g.auth_error = exc.message
            current_app.logger.info("Rejected bearer token", extra={"reason": exc.message})
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": g.get("auth_error", "missing token")}), 401


def ensure_database_directory(database_uri: str) -> None:
    """For SQLite just make sure the parent directory exists."""
    url = make_url(database_uri)
    if url.drivername.startswith("sqlite") and url.database and url.database != ":memory:":
        os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)


def wait_for_database(app: Flask) -> None:
    """Retry the initial connection a bounded number of times, then give up and exit."""
    retries = max(1, int(app.config.get("STORE_CONNECT_RETRIES", 5)))
    interval = float(app.config.get("STORE_CONNECT_INTERVAL", 5))
    for attempt in range(1, retries + 1):
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            app.logger.info("Connected to database", extra={"attempt": attempt})
            return
        except OperationalError:
            remaining = retries - attempt
            if not remaining:
                app.logger.critical("Failed to connect to database after %d attempts", retries, exc_info=True)
                raise SystemExit(1)
            app.logger.warning(
                "Database connection error, retrying in %s seconds (%d attempts remaining)", interval, remaining
            )
            time.sleep(interval)


def register_cli(app: Flask) -> None:
    @app.cli.command("create-admin")
    @click.argument("email")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--role", type=click.Choice(USER_ROLES), default="admin", show_default=True)
    def create_admin(email, password, role):
        """Create an administrator account."""
        try:
            user = get_services().auth.create_administrator(email, password, role=role)
        except ValidationError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Created {user.role} account for {user.email}")


def create_app(config_name: Optional[str] = None, config_overrides: Optional[Mapping] = None) -> Flask:
    """Application factory with environment-aware configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)

    # Resolve configuration
    from config import DevelopmentConfig, ProductionConfig, TestingConfig

    config_key = (config_name or os.getenv("FLASK_CONFIG") or os.getenv("FLASK_ENV") or "production").lower()
    config_map = {
        "development": DevelopmentConfig,
        "dev": DevelopmentConfig,
        "production": ProductionConfig,
        "prod": ProductionConfig,
        "testing": TestingConfig,
        "test": TestingConfig,
    }
    config_class = config_map.get(config_key, ProductionConfig)
    app.config.from_object(config_class())

    # Optional instance-specific overrides
    app.config.from_pyfile("config.py", silent=True)
    if config_overrides:
        app.config.update(config_overrides)

    ensure_database_directory(app.config["SQLALCHEMY_DATABASE_URI"])
    os.makedirs(app.config["COMPLAINT_UPLOAD_FOLDER"], exist_ok=True)

    # Initialize logging early
    logger = init_logging(app)
    app.logger = logger

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    init_services(app)
    register_auth(app)

    from routes import register_blueprints

    register_blueprints(app)
    register_error_handlers(app)
    register_cli(app)

    # Ensure tables exist so first run creates the database structure automatically.
    with app.app_context():
        wait_for_database(app)
        db.create_all()
        get_services().auth.ensure_bootstrap_admin()

    return app
