"""Blueprint registration, health check, and uploaded photo serving."""
from datetime import datetime, timezone

from flask import Blueprint, Flask, current_app, jsonify, send_from_directory
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

from extensions import db, limiter
from .auth import auth_bp
from .complaints import complaints_bp
from .public import public_bp

main_bp = Blueprint("main", __name__)


def _api_rate_limit() -> str:
    return current_app.config.get("API_RATE_LIMIT", "100 per 15 minutes")


# One counter per client for everything under /api/.
_api_limit = limiter.shared_limit(_api_rate_limit, scope="api")
for _api_bp in (auth_bp, complaints_bp, public_bp):
    _api_limit(_api_bp)


def store_connected() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning("Health check could not reach the database", exc_info=True)
        return False


@main_bp.route("/health", methods=["GET"])
def health():
    return jsonify(
        {
            "status": "healthy",
            "time": datetime.now(timezone.utc).isoformat(),
            "storeConnected": store_connected(),
        }
    )


@main_bp.route("/uploads/<path:filename>", methods=["GET"])
def uploaded_photo(filename):
    safe_name = secure_filename(filename)
    return send_from_directory(current_app.config["COMPLAINT_UPLOAD_FOLDER"], safe_name)


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(complaints_bp, url_prefix="/api/complaints")
    app.register_blueprint(public_bp, url_prefix="/api")
