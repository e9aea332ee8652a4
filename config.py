"""Environment-aware configuration for the Flask application."""
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping


class BaseConfig:
    def __init__(self) -> None:
        # Defaults for local dev: SQLite db and a non-empty secret. Override via env for production.
        self.SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
        self.JWT_SECRET = os.getenv("JWT_SECRET", self.SECRET_KEY)
        self.JWT_ALGORITHM = "HS256"
        self.TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", 12))
        db_url = os.getenv("DATABASE_URL")
        if db_url:
            self.SQLALCHEMY_DATABASE_URI = db_url
        else:
            self.SQLALCHEMY_DATABASE_URI = os.getenv(
                "SQLITE_URL",
                f"sqlite:///{os.path.join(os.getcwd(), 'instance', 'mycity.db')}",
            )
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False
        self.SQLALCHEMY_ENGINE_OPTIONS = {
            "pool_pre_ping": True,
            "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", 1800)),
        }
        self.STORE_CONNECT_RETRIES = int(os.getenv("STORE_CONNECT_RETRIES", 5))
        self.STORE_CONNECT_INTERVAL = float(os.getenv("STORE_CONNECT_INTERVAL", 5))
        self.MAIL_SERVER = os.getenv("MAIL_SERVER", "")
        self.MAIL_PORT = int(os.getenv("MAIL_PORT", 25))
        self.MAIL_USERNAME = os.getenv("MAIL_USERNAME", "")
        self.MAIL_PASSWORD = os.getenv("MAIL_PASSWORD", "")
        self.MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "true").lower() == "true"
        self.MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "false").lower() == "true"
        self.MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", self.MAIL_USERNAME)
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))
        self.LOG_FILE_NAME = os.getenv("LOG_FILE_NAME", "mycity.log")
        self.LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", 5_000_000))
        self.LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", 5))
        self.DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@mycity.local")
        self.DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "AdminPass123!")
        self.COMPLAINT_UPLOAD_FOLDER = os.getenv(
            "COMPLAINT_UPLOAD_FOLDER",
            os.path.join(os.getcwd(), "instance", "complaint_uploads"),
        )
        self.PHOTO_BASE_URL = os.getenv("PHOTO_BASE_URL", "/uploads").rstrip("/")
        self.MAX_IMAGE_UPLOAD_BYTES = int(os.getenv("MAX_IMAGE_UPLOAD_BYTES", 5 * 1024 * 1024))
        self.MAX_CONTENT_LENGTH = int(os.getenv("MAX_REQUEST_BYTES", 6 * 1024 * 1024))
        self.COMPLAINT_LIST_LIMIT = int(os.getenv("COMPLAINT_LIST_LIMIT", 100))
        self.RESOLVED_LIST_LIMIT = int(os.getenv("RESOLVED_LIST_LIMIT", 50))
        self.API_RATE_LIMIT = os.getenv("API_RATE_LIMIT", "100 per 15 minutes")
        self.RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"
        self.RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
        self.RATELIMIT_HEADERS_ENABLED = True


class DevelopmentConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = True
        self.ENV = "development"


class ProductionConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.DEBUG = False
        self.ENV = "production"


class TestingConfig(BaseConfig):
    def __init__(self) -> None:
        super().__init__()
        self.TESTING = True
        self.DEBUG = False
        self.ENV = "testing"
        self.SECRET_KEY = "testing-secret"
        self.JWT_SECRET = "testing-jwt-secret"
        # In-memory SQLite runs on a StaticPool; pool tuning options do not apply.
        self.SQLALCHEMY_DATABASE_URI = "sqlite://"
        self.SQLALCHEMY_ENGINE_OPTIONS = {}
        self.STORE_CONNECT_RETRIES = 1
        self.STORE_CONNECT_INTERVAL = 0
        self.MAIL_SERVER = ""
        self.RATELIMIT_ENABLED = False
        self.DEFAULT_ADMIN_EMAIL = "admin@mycity.test"
        self.DEFAULT_ADMIN_PASSWORD = "AdminPass123!"


@dataclass(frozen=True)
class MailSettings:
    server: str
    port: int
    username: str
    password: str
    use_tls: bool
    use_ssl: bool
    sender: str

    @property
    def enabled(self) -> bool:
        return bool(self.server and self.sender)


@dataclass(frozen=True)
class ServiceSettings:
    """Immutable snapshot of the configuration the business services depend on."""

    jwt_secret: str
    jwt_algorithm: str
    token_ttl: timedelta
    bootstrap_admin_email: str
    bootstrap_admin_password: str
    upload_folder: str
    photo_base_url: str
    max_image_bytes: int
    list_limit: int
    resolved_limit: int
    mail: MailSettings

    @classmethod
    def from_mapping(cls, config: Mapping) -> "ServiceSettings":
        secret = config.get("JWT_SECRET") or config.get("SECRET_KEY")
        if not secret:
            raise RuntimeError("JWT_SECRET or SECRET_KEY must be configured")
        return cls(
            jwt_secret=secret,
            jwt_algorithm=config.get("JWT_ALGORITHM", "HS256"),
            token_ttl=timedelta(hours=int(config.get("TOKEN_TTL_HOURS", 12))),
            bootstrap_admin_email=(config.get("DEFAULT_ADMIN_EMAIL") or "").strip(),
            bootstrap_admin_password=config.get("DEFAULT_ADMIN_PASSWORD") or "",
            upload_folder=config["COMPLAINT_UPLOAD_FOLDER"],
            photo_base_url=config.get("PHOTO_BASE_URL", "/uploads"),
            max_image_bytes=int(config.get("MAX_IMAGE_UPLOAD_BYTES", 5 * 1024 * 1024)),
            list_limit=int(config.get("COMPLAINT_LIST_LIMIT", 100)),
            resolved_limit=int(config.get("RESOLVED_LIST_LIMIT", 50)),
            mail=MailSettings(
                server=config.get("MAIL_SERVER", ""),
                port=int(config.get("MAIL_PORT", 25)),
                username=config.get("MAIL_USERNAME", ""),
                password=config.get("MAIL_PASSWORD", ""),
                use_tls=bool(config.get("MAIL_USE_TLS")),
                use_ssl=bool(config.get("MAIL_USE_SSL")),
                sender=config.get("MAIL_DEFAULT_SENDER") or config.get("MAIL_USERNAME", ""),
            ),
        )
