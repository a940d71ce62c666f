"""
Service dependencies for FastAPI.

Builds the user store, GitHub client and login service for each request.
"""
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from playerauth.config import OAuthCredentials, UserStoreBackend, settings
from playerauth.database import get_db
from playerauth.errors import (
    ConfigurationError,
    DuplicateUserError,
    InvalidLoginRequestError,
    PlayerAuthError,
    UpstreamTimeoutError,
    UpstreamError,
)
from playerauth.logging_config import get_logger
from playerauth.sentry_config import capture_exception
from playerauth.services.github_client import GitHubOAuthClient
from playerauth.services.login_service import LoginService
from playerauth.services.user_store import InMemoryUserStore, SqlUserStore, UserStore

log = get_logger(component="dependencies")


def http_error(error: PlayerAuthError) -> HTTPException:
    """
    Map a login-core error to an HTTP error.

    Misconfiguration is a 500, provider problems are 502/504 and data
    conflicts are 409, so operators can tell them apart.
    """
    if isinstance(error, ConfigurationError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    elif isinstance(error, InvalidLoginRequestError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, UpstreamTimeoutError):
        status_code = status.HTTP_504_GATEWAY_TIMEOUT
    elif isinstance(error, UpstreamError):
        status_code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(error, DuplicateUserError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return HTTPException(
        status_code=status_code,
        detail={"kind": error.kind, "stage": error.stage, "message": error.message}
    )


@lru_cache
def get_oauth_credentials() -> OAuthCredentials:
    """
    Credentials validated once per process.

    Raises ConfigurationError when the client id or secret is missing.
    """
    return OAuthCredentials.from_settings(settings)


@lru_cache
def get_memory_store() -> InMemoryUserStore:
    return InMemoryUserStore()


async def get_user_store(db: AsyncSession = Depends(get_db)) -> UserStore:
    if settings.USER_STORE_BACKEND == UserStoreBackend.MEMORY:
        return get_memory_store()
    return SqlUserStore(db)


def get_oauth_client() -> GitHubOAuthClient:
    try:
        credentials = get_oauth_credentials()
    except ConfigurationError as e:
        log.error("oauth_misconfigured", kind=e.kind, reason=e.message)
        capture_exception()
        raise http_error(e)
    return GitHubOAuthClient(credentials)


def get_login_service(
    oauth_client: GitHubOAuthClient = Depends(get_oauth_client),
    store: UserStore = Depends(get_user_store),
) -> LoginService:
    return LoginService(
        oauth_client=oauth_client,
        store=store,
        persist_on_login=settings.PERSIST_ON_LOGIN,
    )


def get_account_service(store: UserStore = Depends(get_user_store)) -> LoginService:
    """Store-only service for routes that never contact GitHub."""
    return LoginService(
        oauth_client=None,
        store=store,
        persist_on_login=settings.PERSIST_ON_LOGIN,
    )
