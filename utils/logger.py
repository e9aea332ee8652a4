"""Rotating log output for complaint intake, triage and notification events."""
import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(module)s:%(lineno)d | %(message)s"


def _build_handlers(log_path: str, level: int, max_bytes: int, backups: int) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
    handlers: list[logging.Handler] = [
        RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def init_logging(app) -> logging.Logger:
    """Send the app logger to ``LOG_DIR/LOG_FILE_NAME`` and stderr.

    Safe to call once per app instance; handlers from an earlier call on the
    same logger are closed and replaced.
    """
    log_dir = app.config.get("LOG_DIR") or os.path.join(app.instance_path, "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, app.config.get("LOG_FILE_NAME") or "mycity.log")

    level_name = (app.config.get("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(app.name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in _build_handlers(
        log_path,
        level,
        int(app.config.get("LOG_MAX_BYTES", 5_000_000)),
        int(app.config.get("LOG_BACKUP_COUNT", 5)),
    ):
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    app.logger.handlers = logger.handlers
    app.logger.setLevel(level)

    logger.info(
        "MyCity complaint service logging ready",
        extra={"log_path": log_path, "log_level": level_name, "environment": app.config.get("ENV")},
    )
    return logger
