"""
Login reconciliation.

Runs the code-login pipeline (token exchange, profile fetch, identity
hashing, lookup by email) and merges the result with the stored record.
Any stage that fails aborts the rest of the pipeline; nothing is written
for a failed login.
"""
import enum

from playerauth.errors import ConfigurationError, DuplicateUserError, PlayerAuthError
from playerauth.logging_config import get_logger
from playerauth.routes.metrics import track_login, track_login_failure
from playerauth.schemas import (
    DEFAULT_USER_RECORD,
    IdentityHash,
    UserRecord,
    default_progress_state,
)
from playerauth.services.github_client import GitHubOAuthClient
from playerauth.services.identity import derive_identity_hash
from playerauth.services.user_store import UserStore

log = get_logger(component="login_service")


class LoginStage(str, enum.Enum):
    """Stages of a code login, in the order they run."""
    EXCHANGING = "exchanging"
    RESOLVING_PROFILE = "resolving_profile"
    HASHING = "hashing"
    LOOKING_UP = "looking_up"
    MERGING = "merging"
    CREATING = "creating"
    RETURNED = "returned"
    FAILED = "failed"


class LoginService:
    """
    Service reconciling GitHub logins with stored user records.

    Without an OAuth client only the hash login and record accessors work.
    """

    def __init__(
        self,
        oauth_client: GitHubOAuthClient | None,
        store: UserStore,
        persist_on_login: bool = False
    ):
        self.oauth_client = oauth_client
        self.store = store
        self.persist_on_login = persist_on_login

    async def login_by_code(self, code: str) -> UserRecord:
        """
        Log in with a GitHub authorization code.

        Args:
            code: OAuth authorization code

        Returns:
            Existing record with a fresh identity hash, or a new record with
            empty progress state when the email has not been seen before

        Raises:
            PlayerAuthError: the failing stage is available as ``error.stage``
        """
        stage = LoginStage.EXCHANGING
        try:
            if self.oauth_client is None:
                raise ConfigurationError("No OAuth client configured for code login")
            access_token = await self.oauth_client.exchange_code_for_token(code)

            stage = LoginStage.RESOLVING_PROFILE
            profile = await self.oauth_client.fetch_profile(access_token)

            stage = LoginStage.HASHING
            identity_hash = derive_identity_hash(access_token)

            stage = LoginStage.LOOKING_UP
            existing = await self.store.find_by_email(profile.email)

            if existing is not None:
                stage = LoginStage.MERGING
                user = existing.with_identity_hash(identity_hash)
                if self.persist_on_login:
                    await self.store.replace(user)
            else:
                stage = LoginStage.CREATING
                user = UserRecord(
                    identity_hash=identity_hash,
                    profile=profile,
                    progress_state=default_progress_state(),
                )
                if self.persist_on_login:
                    user = await self._persist_new(user)
        except PlayerAuthError as e:
            e.stage = e.stage or stage.value
            self._log_failure(stage, e.kind, e.message)
            raise
        except Exception as e:
            self._log_failure(stage, "unexpected", type(e).__name__)
            raise

        outcome = "merged" if stage == LoginStage.MERGING else "created"
        track_login("code", outcome)
        log.info(
            "login_succeeded",
            login_stage=LoginStage.RETURNED.value,
            outcome=outcome,
            email=user.profile.email,
            persisted=self.persist_on_login,
        )
        return user

    async def _persist_new(self, user: UserRecord) -> UserRecord:
        try:
            await self.store.insert(user)
            return user
        except DuplicateUserError:
            # A concurrent first login for the same email won the insert
            existing = await self.store.find_by_email(user.profile.email)
            if existing is None:
                raise
            log.info("login_reconciled_duplicate", email=user.profile.email)
            merged = existing.with_identity_hash(user.identity_hash)
            await self.store.replace(merged)
            return merged

    async def login_by_hash(self, identity_hash: IdentityHash) -> UserRecord:
        """
        Resume a session from a previously issued identity hash.

        Returns:
            The matching record, or a copy of DEFAULT_USER_RECORD when none matches
        """
        user = None
        if identity_hash and identity_hash.strip():
            user = await self.store.find_by_identity_hash(identity_hash.strip())

        if user is None:
            track_login("hash", "default")
            log.info("login_by_hash_missed")
            return DEFAULT_USER_RECORD.model_copy(deep=True)

        track_login("hash", "resumed")
        log.info("login_by_hash_succeeded", email=user.profile.email)
        return user

    async def list_users(self) -> list[UserRecord]:
        return await self.store.list_all()

    async def save_user(self, user: UserRecord) -> None:
        """Persist a new record; raises DuplicateUserError if the email exists."""
        await self.store.insert(user)

    async def delete_user(self, email: str) -> int:
        return await self.store.delete(email)

    async def update_user(self, user: UserRecord) -> None:
        """Replace the stored record for ``user.profile.email``."""
        await self.store.replace(user)

    def _log_failure(self, stage: LoginStage, kind: str, reason: str) -> None:
        track_login("code", "failed")
        track_login_failure(stage.value, kind)
        log.warning(
            "login_failed",
            login_stage=LoginStage.FAILED.value,
            stage=stage.value,
            kind=kind,
            reason=reason,
        )
