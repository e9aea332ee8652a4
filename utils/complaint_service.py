"""Complaint lifecycle: public submission, admin triage, resolved feed."""
import logging
import math
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage

from config import ServiceSettings
from extensions import db
from models import COMPLAINT_STATUSES, DEFAULT_COMPLAINT_STATUS, RESOLVED_STATUS, Complaint
from utils.email_service import StatusNotifier
from utils.errors import NotFound, StoreError, ValidationError
from utils.storage import LocalPhotoStorage


def _bounded(limit: int | None, cap: int) -> int:
    if limit is None or limit <= 0:
        return cap
    return min(limit, cap)


class ComplaintService:
    def __init__(
        self,
        settings: ServiceSettings,
        storage: LocalPhotoStorage,
        notifier: StatusNotifier,
        logger: logging.Logger,
    ):
        self.settings = settings
        self.storage = storage
        self.notifier = notifier
        self.logger = logger

    def submit(
        self,
        description: str | None,
        email: str | None = None,
        lat: float | None = None,
        lng: float | None = None,
        photo: FileStorage | None = None,
    ) -> Complaint:
        description = (description or "").strip()
        if not description:
            raise ValidationError("description required")
        for name, value in (("lat", lat), ("lng", lng)):
            if value is not None and not math.isfinite(value):
                raise ValidationError(f"{name} must be a finite number")

        # The record may only reference a photo the storage has already confirmed.
        photo_url = self.storage.upload(photo) if photo else None

        complaint = Complaint(
            description=description,
            email=(email or "").strip() or None,
            lat=lat,
            lng=lng,
            photo_url=photo_url,
            status=DEFAULT_COMPLAINT_STATUS,
            created_at=datetime.utcnow(),
        )
        db.session.add(complaint)
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            if photo_url:
                self.storage.discard(photo_url)
            self.logger.exception("Database error while saving complaint")
            raise StoreError(str(exc)) from exc

        self.logger.info("Complaint submitted", extra={"complaint_id": complaint.id, "has_photo": bool(photo_url)})
        return complaint

    def list_complaints(self, limit: int | None = None) -> list[Complaint]:
        return (
            Complaint.query.order_by(Complaint.created_at.desc())
            .limit(_bounded(limit, self.settings.list_limit))
            .all()
        )

    def get(self, complaint_id: str) -> Complaint:
        complaint = db.session.get(Complaint, str(complaint_id)) if complaint_id else None
        if complaint is None:
            raise NotFound()
        return complaint

    def set_status(self, complaint_id: str, status: str) -> Complaint:
        # Any enumerated status may follow any other; there are no transition guards.
        if status not in COMPLAINT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(COMPLAINT_STATUSES)}")
        complaint = self.get(complaint_id)

        previous = complaint.status
        complaint.status = status
        complaint.updated_at = datetime.utcnow()
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            self.logger.exception("Database error while updating complaint status")
            raise StoreError(str(exc)) from exc

        self.logger.info(
            "Complaint status changed",
            extra={"complaint_id": complaint.id, "previous_status": previous, "new_status": status},
        )
        if complaint.email:
            try:
                self.notifier.notify_status_change(complaint.notification_snapshot())
            except Exception:
                self.logger.exception("Could not schedule status email", extra={"complaint_id": complaint.id})
        return complaint

    def list_resolved(self, limit: int | None = None) -> list[Complaint]:
        return (
            Complaint.query.filter(Complaint.status == RESOLVED_STATUS)
            .order_by(Complaint.updated_at.desc())
            .limit(_bounded(limit, self.settings.resolved_limit))
            .all()
        )
