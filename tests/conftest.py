"""
Shared fixtures: a fake GitHub OAuth provider served through
httpx.MockTransport, in-memory and SQLite-backed user stores.
"""
import os
from contextlib import asynccontextmanager

# Settings are read at import time; point them at test values first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GITHUB_CLIENT_ID", "test-client-id")
os.environ.setdefault("GITHUB_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from playerauth.config import EmailSelectionPolicy, OAuthCredentials  # noqa: E402
from playerauth.models.base import Base  # noqa: E402
from playerauth.models.user import UserAccount  # noqa: E402,F401
from playerauth.services.github_client import GitHubOAuthClient  # noqa: E402
from playerauth.services.login_service import LoginService  # noqa: E402
from playerauth.services.user_store import InMemoryUserStore, SqlUserStore  # noqa: E402

CLIENT_ID = "test-client-id"
CLIENT_SECRET = "test-client-secret"


def email_entry(email: str, primary: bool = True, verified: bool = True) -> dict:
    return {"email": email, "primary": primary, "verified": verified, "visibility": "public"}


class FakeGitHub:
    """
    Minimal GitHub OAuth provider.

    ``accounts`` maps an authorization code to the email list returned for
    the token it is exchanged for. Each exchange issues a new token.
    """

    def __init__(self, accounts: dict[str, list[dict]]):
        self.accounts = accounts
        self.issued: dict[str, str] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/login/oauth/access_token":
            code = request.url.params.get("code")
            if code not in self.accounts:
                return httpx.Response(200, json={
                    "error": "bad_verification_code",
                    "error_description": "The code passed is incorrect or expired.",
                })
            token = f"gho_{code}_{len(self.issued)}"
            self.issued[token] = code
            return httpx.Response(200, json={
                "access_token": token,
                "token_type": "bearer",
                "scope": "user:email",
            })

        if request.url.path == "/user/emails":
            token = request.headers.get("Authorization", "").removeprefix("token ")
            if token not in self.issued:
                return httpx.Response(401, json={"message": "Bad credentials"})
            return httpx.Response(200, json=self.accounts[self.issued[token]])

        return httpx.Response(404)


@pytest.fixture
def credentials():
    return OAuthCredentials(client_id=CLIENT_ID, client_secret=CLIENT_SECRET)


@pytest.fixture
def fake_github():
    return FakeGitHub({
        "validcode": [email_entry("a@x.com")],
        "validcode2": [email_entry("a@x.com")],
        "othercode": [email_entry("b@x.com")],
    })


@pytest_asyncio.fixture
async def make_oauth_client(credentials):
    """
    Build a GitHubOAuthClient whose HTTP calls go to ``handler``.

    HTTP clients created here are closed when the test finishes.
    """
    http_clients: list[httpx.AsyncClient] = []

    def _make(handler, email_policy=EmailSelectionPolicy.PRIMARY_VERIFIED, timeout=5.0):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        http_clients.append(http_client)
        return GitHubOAuthClient(
            credentials,
            http_client=http_client,
            email_policy=email_policy,
            timeout=timeout,
        )

    yield _make

    for http_client in http_clients:
        await http_client.aclose()


@pytest.fixture
def oauth_client(make_oauth_client, fake_github):
    return make_oauth_client(fake_github.handler)


@pytest.fixture
def memory_store():
    return InMemoryUserStore()


@pytest.fixture
def login_service(oauth_client, memory_store):
    return LoginService(oauth_client=oauth_client, store=memory_store)


@asynccontextmanager
async def sqlite_session():
    """Session on a fresh in-memory SQLite database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_factory() as session:
            yield session
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def sql_store():
    async with sqlite_session() as session:
        yield SqlUserStore(session)


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request):
    """Each store test runs once per backend."""
    if request.param == "memory":
        yield InMemoryUserStore()
    else:
        async with sqlite_session() as session:
            yield SqlUserStore(session)
