"""Account management: invitations, password resets and the bootstrap admin."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from woodland.models.user import User, UserRole
from woodland.schemas.user import UserCreate, UserUpdate
from woodland.security.passwords import generate_token, hash_password, verify_password

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from woodland.config import Settings

logger = logging.getLogger(__name__)


class EmailAlreadyRegistered(Exception):
    pass


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _is_unexpired(expires: datetime | None) -> bool:
    expires = _as_utc(expires)
    return expires is not None and expires > datetime.now(UTC)


class UserService:
    def get_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    def get(self, db: Session, user_id) -> User | None:
        return db.get(User, user_id)

    def list_users(self, db: Session) -> list[User]:
        return db.query(User).order_by(User.created_at.desc(), User.email).all()

    def authenticate(self, db: Session, email: str, password: str) -> User | None:
        """Return the user when the password matches, regardless of status."""
        user = self.get_by_email(db, email)
        if user is None:
            # Hash anyway so unknown emails take as long as wrong passwords.
            hash_password(password)
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def record_login(self, db: Session, user: User) -> None:
        user.last_login_at = datetime.now(UTC)
        db.commit()

    def create_user(
        self, db: Session, payload: UserCreate, config: Settings
    ) -> tuple[User, str | None]:
        """Create an account; returns it with the invitation token, if any.

        Accounts created with a password and without email verification are
        active immediately. Otherwise the account stays inactive until the
        invitee follows the emailed link.
        """
        email = str(payload.email).strip().lower()
        if self.get_by_email(db, email) is not None:
            raise EmailAlreadyRegistered(email)

        needs_verification = payload.require_email_verification or not payload.password
        token = generate_token() if needs_verification else None
        user = User(
            email=email,
            name=payload.name,
            role=payload.role.value,
            hashed_password=hash_password(payload.password or generate_token()),
            is_active=not needs_verification,
            is_verified=not needs_verification,
            is_superuser=payload.role == UserRole.ADMIN,
            verification_token=token,
            verification_expires=(
                datetime.now(UTC) + timedelta(hours=config.verification_expires_hours)
                if token
                else None
            ),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created %s account %s", user.role, user.email)
        return user, token

    def update_user(self, db: Session, user: User, payload: UserUpdate) -> User:
        if payload.name is not None:
            user.name = payload.name
        if payload.role is not None:
            user.role = payload.role.value
            user.is_superuser = payload.role == UserRole.ADMIN
        if payload.is_active is not None:
            user.is_active = payload.is_active
        db.commit()
        db.refresh(user)
        return user

    def issue_reset_token(self, db: Session, user: User, config: Settings) -> str:
        token = generate_token()
        user.reset_token = token
        user.reset_token_expires = datetime.now(UTC) + timedelta(
            minutes=config.password_reset_expires_minutes
        )
        db.commit()
        return token

    def get_by_reset_token(self, db: Session, token: str) -> User | None:
        if not token:
            return None
        user = db.query(User).filter(User.reset_token == token).first()
        if user is None or not _is_unexpired(user.reset_token_expires):
            return None
        return user

    def reset_password(self, db: Session, user: User, new_password: str) -> None:
        user.hashed_password = hash_password(new_password)
        user.reset_token = None
        user.reset_token_expires = None
        db.commit()

    def get_by_verification_token(self, db: Session, token: str) -> User | None:
        if not token:
            return None
        user = db.query(User).filter(User.verification_token == token).first()
        if user is None or not _is_unexpired(user.verification_expires):
            return None
        return user

    def activate(self, db: Session, user: User, password: str) -> None:
        user.hashed_password = hash_password(password)
        user.is_active = True
        user.is_verified = True
        user.verification_token = None
        user.verification_expires = None
        db.commit()

    def ensure_admin(
        self, db: Session, email: str, password: str, name: str = "Administrator"
    ) -> bool:
        """Create the bootstrap admin unless the email is taken. True if created."""
        if self.get_by_email(db, email) is not None:
            return False
        db.add(
            User(
                email=email.strip().lower(),
                name=name,
                role=UserRole.ADMIN.value,
                hashed_password=hash_password(password),
                is_active=True,
                is_verified=True,
                is_superuser=True,
            )
        )
        db.commit()
        return True


user_service = UserService()
