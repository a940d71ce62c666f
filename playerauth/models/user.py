"""
User account model.

Stores one row per email with the latest identity hash, the provider
profile, and the application-owned progress state.
"""
import uuid
from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from playerauth.models.base import Base, TimestampMixin
from playerauth.schemas import UserProfile, UserRecord


class UserAccount(Base, TimestampMixin):
    """
    Persisted user record.

    ``email`` is unique; ``identity_hash`` is a secondary lookup key used to
    resume a session.
    """
    __tablename__ = "user_accounts"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    identity_hash: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    profile: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    progress_state: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserAccount":
        return cls(
            email=record.profile.email,
            identity_hash=record.identity_hash,
            profile=record.profile.model_dump(),
            progress_state=record.progress_state,
        )

    def to_record(self) -> UserRecord:
        return UserRecord(
            identity_hash=self.identity_hash,
            profile=UserProfile.model_validate(self.profile),
            progress_state=self.progress_state or {},
        )

    def __repr__(self):
        return f"<UserAccount(id={self.id}, email={self.email})>"
