"""
Identity hash derivation.

The identity hash is a SHA-256 fingerprint of the OAuth access token. It
changes on every login; the email stays the stable key.
"""
import hashlib

from playerauth.schemas import IdentityHash


def derive_identity_hash(access_token: str | bytes) -> IdentityHash:
    """Return the hex-encoded SHA-256 digest of the access token."""
    if isinstance(access_token, str):
        access_token = access_token.encode("utf-8")
    elif not isinstance(access_token, bytes):
        raise TypeError(
            f"access token must be str or bytes, not {type(access_token).__name__}"
        )
    return hashlib.sha256(access_token).hexdigest()
