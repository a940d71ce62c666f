"""
Error taxonomy for the login pipeline.

Each error carries a ``kind`` so the HTTP layer and the logs can tell a
misconfigured deployment from an upstream provider problem from a data
conflict. ``stage`` is filled in by the login service when the error
aborts a login.
"""
from typing import Optional


class PlayerAuthError(Exception):
    """Base class for all errors raised by the login core."""

    kind = "error"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage


class ConfigurationError(PlayerAuthError):
    """OAuth client credentials are missing. Fatal, raised before any network call."""

    kind = "configuration"


class InvalidLoginRequestError(PlayerAuthError):
    """The caller supplied an empty authorization code."""

    kind = "invalid_request"


class UpstreamError(PlayerAuthError):
    """The identity provider could not be used."""

    kind = "upstream"


class UpstreamResponseError(UpstreamError):
    """The provider answered with an error status or unusable data."""

    kind = "upstream_response"


class UpstreamTimeoutError(UpstreamError):
    """The provider did not answer within the configured timeout."""

    kind = "upstream_timeout"


class DuplicateUserError(PlayerAuthError):
    """A user record for this email already exists in the store."""

    kind = "duplicate"

    def __init__(self, email: str, stage: Optional[str] = None):
        super().__init__(f"User already exists (duplicated email): {email}", stage=stage)
        self.email = email
