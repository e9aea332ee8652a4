"""Administrator authentication: password login, bearer tokens, bootstrap."""
import logging
from datetime import datetime, timezone

import jwt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from config import ServiceSettings
from extensions import db
from models import USER_ROLES, User
from utils.errors import InvalidCredentials, InvalidToken, StoreError, ValidationError


class AuthService:
    """Issues and verifies signed, time-bounded tokens for administrators."""

    def __init__(self, settings: ServiceSettings, logger: logging.Logger):
        self.settings = settings
        self.logger = logger
        # Compared against when the email is unknown so both failure paths do the same work.
        self._dummy_hash = generate_password_hash("mycity-dummy-password", method="pbkdf2:sha256", salt_length=16)

    def login(self, email: str, password: str) -> str:
        user = User.query.filter_by(email=email).first()
        password_ok = check_password_hash(user.password_hash if user else self._dummy_hash, password or "")
        if user is None or not password_ok:
            self.logger.warning("Administrator login failed", extra={"email": email})
            raise InvalidCredentials()
        self.logger.info("Administrator logged in", extra={"user_id": user.id})
        return self.issue_token(user)

    def issue_token(self, user: User) -> str:
        issued_at = datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "email": user.email,
            "role": user.role,
            "iat": issued_at,
            "exp": issued_at + self.settings.token_ttl,
        }
        return jwt.encode(payload, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def verify(self, token: str) -> User:
        if not token:
            raise InvalidToken("missing token")
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidToken() from exc

        user = db.session.get(User, str(payload["sub"]))
        if user is None:
            raise InvalidToken()
        return user

    def create_administrator(self, email: str, password: str, role: str = "admin") -> User:
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("email and password required")
        if role not in USER_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")

        user = User(email=email, role=role)
        user.set_password(password)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ValidationError("an account with this email already exists") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(str(exc)) from exc
        self.logger.info("Administrator created", extra={"user_id": user.id, "role": role})
        return user

    def ensure_bootstrap_admin(self) -> User | None:
        """Create the configured administrator when the credential store is empty."""
        if User.query.first() is not None:
            return None

        email = self.settings.bootstrap_admin_email
        password = self.settings.bootstrap_admin_password
        if not email or not password:
            self.logger.warning("No administrator exists and no bootstrap credentials are configured")
            return None

        try:
            user = self.create_administrator(email, password, role="admin")
        except ValidationError:
            # Another worker won the race; the unique index kept a single row.
            self.logger.info("Bootstrap administrator already created by another process")
            return None
        self.logger.warning("Created initial administrator", extra={"email": email})
        return user
