"""
Pydantic schemas for user records and request bodies.

A ``UserRecord`` is what the login core hands back to callers: the identity
hash derived from the latest access token, the provider profile, and the
application-owned progress state, which is carried through untouched.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


IdentityHash = str


def default_progress_state() -> dict[str, Any]:
    """Progress state given to a user on first login."""
    return {}


class UserProfile(BaseModel):
    """Email entry returned by the provider's ``/user/emails`` endpoint."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    email: str
    primary: Optional[bool] = None
    verified: Optional[bool] = None
    visibility: Optional[str] = None

    @field_validator("email")
    @classmethod
    def strip_email(cls, value: str) -> str:
        return value.strip()


class UserRecord(BaseModel):
    """Persisted user entity, keyed by ``profile.email``."""

    model_config = ConfigDict(frozen=True)

    identity_hash: IdentityHash
    profile: UserProfile
    progress_state: dict[str, Any] = Field(default_factory=default_progress_state)

    @property
    def is_default(self) -> bool:
        """True for the empty record returned when a lookup finds nothing."""
        return self.identity_hash == "" and self.profile.email == ""

    def with_identity_hash(self, identity_hash: IdentityHash) -> "UserRecord":
        return self.model_copy(update={"identity_hash": identity_hash})


# Returned by hash lookups that find nothing
DEFAULT_USER_RECORD = UserRecord(
    identity_hash="",
    profile=UserProfile(email=""),
    progress_state={},
)


class LoginRequest(BaseModel):
    """Body of ``POST /users/login``."""

    model_config = ConfigDict(extra="forbid")

    code: str

    @field_validator("code")
    @classmethod
    def code_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("code must not be empty")
        return value


class HashLoginRequest(BaseModel):
    """Body of ``POST /users/login/hash``."""

    model_config = ConfigDict(extra="forbid")

    hash: IdentityHash


class UserRecordIn(BaseModel):
    """Body of ``POST /users`` and ``PUT /users``."""

    model_config = ConfigDict(extra="forbid")

    identity_hash: IdentityHash
    profile: UserProfile
    progress_state: dict[str, Any] = Field(default_factory=default_progress_state)

    @field_validator("profile")
    @classmethod
    def profile_has_email(cls, value: UserProfile) -> UserProfile:
        if "@" not in value.email:
            raise ValueError("profile.email must be an email address")
        return value

    def to_record(self) -> UserRecord:
        return UserRecord(
            identity_hash=self.identity_hash,
            profile=self.profile,
            progress_state=self.progress_state,
        )
