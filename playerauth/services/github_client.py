"""
GitHub OAuth client.

Exchanges an authorization code for an access token and resolves the
user's email profile. Every failure is raised as one of the upstream
errors so callers never receive a half-parsed response.
"""
import time
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from playerauth.config import EmailSelectionPolicy, OAuthCredentials, settings
from playerauth.errors import (
    InvalidLoginRequestError,
    UpstreamResponseError,
    UpstreamTimeoutError,
)
from playerauth.logging_config import get_logger
from playerauth.routes.metrics import track_upstream_call
from playerauth.schemas import UserProfile

log = get_logger(component="github_client")


class GitHubOAuthClient:
    """Client for the GitHub token endpoint and the ``/user/emails`` API."""

    def __init__(
        self,
        credentials: OAuthCredentials,
        http_client: httpx.AsyncClient | None = None,
        token_url: str | None = None,
        emails_url: str | None = None,
        email_policy: EmailSelectionPolicy | None = None,
        timeout: float | None = None,
    ):
        self.credentials = credentials
        self.token_url = token_url or settings.GITHUB_TOKEN_URL
        self.emails_url = emails_url or settings.GITHUB_EMAILS_URL
        self.email_policy = email_policy or settings.EMAIL_SELECTION_POLICY
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self._http_client = http_client

    def build_token_url(self, code: str) -> str:
        """
        Build the token exchange URL.

        Args:
            code: OAuth authorization code from the GitHub redirect

        Returns:
            Token endpoint URL with client_id, client_secret and code as query
        """
        if not code or not code.strip():
            raise InvalidLoginRequestError("Authorization code must not be empty")

        params = urlencode({
            "client_id": self.credentials.client_id,
            "client_secret": self.credentials.client_secret,
            "code": code.strip(),
        })
        return f"{self.token_url}?{params}"

    async def exchange_code_for_token(self, code: str) -> str:
        """
        Exchange an authorization code for an access token.

        Raises:
            UpstreamResponseError: response is not JSON or lacks a string access_token
            UpstreamTimeoutError: GitHub did not answer in time
        """
        url = self.build_token_url(code)
        response = await self._request(
            "token_exchange",
            "POST",
            url,
            headers={"Accept": "application/json"},
        )
        body = self._json(response, "token_exchange")

        access_token = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(access_token, str) or not access_token:
            reason = ""
            if isinstance(body, dict) and body.get("error"):
                reason = f" ({body.get('error')}: {body.get('error_description', '')})"
            raise UpstreamResponseError(
                f"Cannot get access token from GitHub OAuth app{reason}"
            )

        return access_token

    async def fetch_profile(self, access_token: str) -> UserProfile:
        """
        Fetch the user's email list and pick the canonical entry.

        Args:
            access_token: Bearer token returned by the code exchange

        Returns:
            UserProfile chosen according to the email selection policy
        """
        response = await self._request(
            "profile",
            "GET",
            self.emails_url,
            headers={
                "Authorization": f"token {access_token}",
                "Accept": "application/vnd.github+json",
            },
        )
        body = self._json(response, "profile")

        if not isinstance(body, list) or not body:
            raise UpstreamResponseError("Cannot get user info from GitHub: empty email list")

        profiles = []
        for entry in body:
            if not isinstance(entry, dict) or not isinstance(entry.get("email"), str):
                raise UpstreamResponseError("Cannot get user info from GitHub: malformed email entry")
            email = entry["email"].strip()
            if "@" not in email:
                raise UpstreamResponseError("Cannot get user info from GitHub: invalid email address")
            try:
                profiles.append(UserProfile.model_validate({**entry, "email": email}))
            except ValidationError as e:
                raise UpstreamResponseError("Cannot get user info from GitHub: malformed email entry") from e

        return self.select_profile(profiles)

    def select_profile(self, profiles: list[UserProfile]) -> UserProfile:
        """Apply the email selection policy to an ordered list of profiles."""
        if self.email_policy == EmailSelectionPolicy.FIRST:
            candidates = profiles
        elif self.email_policy == EmailSelectionPolicy.PRIMARY:
            candidates = [p for p in profiles if p.primary]
        else:
            candidates = [p for p in profiles if p.primary and p.verified]

        if not candidates:
            raise UpstreamResponseError(
                f"GitHub returned no email matching policy '{self.email_policy.value}'"
            )
        return candidates[0]

    async def _request(self, call: str, method: str, url: str, headers: dict) -> httpx.Response:
        start_time = time.time()
        outcome = "error"
        try:
            if self._http_client is not None:
                response = await self._http_client.request(
                    method, url, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, headers=headers)
            outcome = str(response.status_code)
        except httpx.TimeoutException as e:
            outcome = "timeout"
            log.warning("upstream_timeout", call=call, timeout=self.timeout)
            raise UpstreamTimeoutError(
                f"GitHub {call} request timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            log.warning("upstream_request_failed", call=call, error=type(e).__name__)
            raise UpstreamResponseError(f"GitHub {call} request failed: {type(e).__name__}") from e
        finally:
            track_upstream_call(call, outcome, time.time() - start_time)

        if response.status_code < 200 or response.status_code >= 300:
            log.warning("upstream_bad_status", call=call, status_code=response.status_code)
            raise UpstreamResponseError(
                f"GitHub {call} request returned HTTP {response.status_code}"
            )

        return response

    @staticmethod
    def _json(response: httpx.Response, call: str):
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamResponseError(f"GitHub {call} response is not valid JSON") from e
