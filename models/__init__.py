"""Data models for administrator credentials and citizen complaints."""
import uuid
from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db


def generate_uuid() -> str:
	return str(uuid.uuid4())


def _isoformat(value: datetime | None) -> str | None:
	"""Stored timestamps are naive UTC; emit them with an explicit offset."""
	if value is None:
		return None
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	return value.isoformat()


USER_ROLES: tuple[str, ...] = (
	"admin",
	"user",
)

COMPLAINT_STATUSES: tuple[str, ...] = (
	"Pending",
	"In Progress",
	"Resolved",
)

DEFAULT_COMPLAINT_STATUS = "Pending"
RESOLVED_STATUS = "Resolved"


class User(UserMixin, db.Model):
	__tablename__ = "users"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	# Case-sensitive by design; the unique index is the source of truth for bootstrap races.
	email = db.Column(db.String(255), unique=True, nullable=False, index=True)
	password_hash = db.Column(db.String(255), nullable=False)
	role = db.Column(db.String(20), nullable=False, default="admin")
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

	__table_args__ = (
		db.CheckConstraint("role IN ('admin','user')", name="ck_user_role"),
	)

	def set_password(self, password: str) -> None:
		self.password_hash = generate_password_hash(password, method="pbkdf2:sha256", salt_length=16)

	def check_password(self, password: str) -> bool:
		return check_password_hash(self.password_hash, password)

	@property
	def is_admin(self) -> bool:
		return (self.role or "").lower() == "admin"


class Complaint(db.Model):
	__tablename__ = "complaints"

	id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
	description = db.Column(db.Text, nullable=False)
	email = db.Column(db.String(255), nullable=True)
	lat = db.Column(db.Float, nullable=True)
	lng = db.Column(db.Float, nullable=True)
	photo_url = db.Column(db.String(512), nullable=True)
	status = db.Column(db.String(20), nullable=False, default=DEFAULT_COMPLAINT_STATUS, index=True)
	created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
	updated_at = db.Column(db.DateTime, nullable=True, index=True)

	__table_args__ = (
		db.CheckConstraint(
			"status IN ('Pending','In Progress','Resolved')",
			name="ck_complaint_status",
		),
	)

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"description": self.description,
			"email": self.email,
			"lat": self.lat,
			"lng": self.lng,
			"photoUrl": self.photo_url,
			"status": self.status,
			"createdAt": _isoformat(self.created_at),
			"updatedAt": _isoformat(self.updated_at),
		}

	def notification_snapshot(self) -> dict:
		"""Plain values safe to hand to a worker thread outside the session."""
		return {
			"id": self.id,
			"email": self.email,
			"status": self.status,
			"description": self.description,
		}
