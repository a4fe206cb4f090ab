"""
Stack Auth identity provider client.

Resolves an access token into an authenticated principal through the
Stack Auth server REST API and revokes sessions on sign-out. ``requests``
is blocking, so calls run in the threadpool. Token lookups are retried
on connection errors and timeouts.

Dependencies: requests, tenacity, fastapi, lms_backend.configs
System role: Identity provider collaborator
"""

import logging
from dataclasses import dataclass

import requests
from fastapi.concurrency import run_in_threadpool
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from lms_backend.configs.identity import IdentitySettings
from lms_backend.core.exceptions import UpstreamFailureError

logger = logging.getLogger(__name__)

RESOLVE_ATTEMPTS = 3


@dataclass(frozen=True)
class Principal:
    """
    Authenticated principal as reported by the identity provider.

    Attributes:
        id: Opaque, stable user identifier
        primary_email: Primary email address (may be None for some providers)
        display_name: Human-readable name (may be None)
        is_restricted: True until the primary email has been verified
    """

    id: str
    primary_email: str | None
    display_name: str | None
    is_restricted: bool


class StackAuthClient:
    """Stack Auth server API client."""

    def __init__(self, settings: IdentitySettings, http: requests.Session | None = None) -> None:
        """
        Initialize client with server credentials.

        Args:
            settings: Identity provider settings
            http: Optional requests session (shared connection pool)
        """
        self._settings = settings
        self._http = http or requests.Session()

    def _headers(self, access_token: str) -> dict[str, str]:
        return {
            "x-stack-access-type": "server",
            "x-stack-project-id": self._settings.project_id,
            "x-stack-secret-server-key": self._settings.secret_server_key,
            "x-stack-access-token": access_token,
        }

    def _url(self, path: str) -> str:
        return f"{self._settings.api_url.rstrip('/')}/api/v1{path}"

    @retry(
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        stop=stop_after_attempt(RESOLVE_ATTEMPTS),
        wait=wait_exponential_jitter(initial=0.2, max=2, jitter=0.1),
        before_sleep=lambda retry_state: logger.warning(
            f"{__name__}:resolve - Retry {retry_state.attempt_number}/{RESOLVE_ATTEMPTS} after connection error"
        ),
        reraise=True,
    )
    def _get_current_user(self, access_token: str) -> requests.Response:
        return self._http.get(
            self._url("/users/me"),
            headers=self._headers(access_token),
            timeout=self._settings.request_timeout,
        )

    def _fetch_current_user(self, access_token: str) -> Principal | None:
        try:
            response = self._get_current_user(access_token)
        except requests.RequestException as e:
            raise UpstreamFailureError(
                "Identity provider unavailable", operation="resolve"
            ) from e

        if response.status_code in (401, 403, 404):
            return None
        if response.status_code != 200:
            logger.error(
                "Identity provider returned unexpected status",
                extra={"status_code": response.status_code},
            )
            raise UpstreamFailureError(
                "Identity provider error",
                operation="resolve",
                details={"status_code": response.status_code},
            )

        data = response.json()
        return Principal(
            id=data["id"],
            primary_email=data.get("primary_email"),
            display_name=data.get("display_name"),
            is_restricted=not data.get("primary_email_verified", False),
        )

    async def resolve(self, access_token: str) -> Principal | None:
        """
        Resolve an access token into a principal.

        Args:
            access_token: Token presented by the client

        Returns:
            Principal if the token is valid, None if it is missing or rejected

        Raises:
            UpstreamFailureError: If the provider is unreachable or errors
        """
        if not access_token:
            return None
        return await run_in_threadpool(self._fetch_current_user, access_token)

    def _revoke_current_session(self, access_token: str) -> None:
        try:
            response = self._http.delete(
                self._url("/auth/sessions/current"),
                headers=self._headers(access_token),
                timeout=self._settings.request_timeout,
            )
        except requests.RequestException as e:
            raise UpstreamFailureError("Identity provider unavailable", operation="sign_out") from e

        # Already-expired sessions are treated as signed out
        if response.status_code >= 500:
            raise UpstreamFailureError(
                "Identity provider error",
                operation="sign_out",
                details={"status_code": response.status_code},
            )

    async def sign_out(self, access_token: str) -> None:
        """
        Revoke the session behind an access token.

        Args:
            access_token: Token of the session to end

        Raises:
            UpstreamFailureError: If the provider is unreachable or errors
        """
        await run_in_threadpool(self._revoke_current_session, access_token)
        logger.info("Session revoked at identity provider")

    def _search_users(self, email: str) -> list[dict]:
        headers = self._headers("")
        headers.pop("x-stack-access-token")
        try:
            response = self._http.get(
                self._url("/users"),
                headers=headers,
                params={"query": email},
                timeout=self._settings.request_timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamFailureError(
                "Identity provider unavailable", operation="list_users"
            ) from e
        return response.json().get("items", [])

    async def find_by_email(self, email: str) -> Principal | None:
        """
        Look up a provider user by primary email (case-insensitive).

        Args:
            email: Email address to search for

        Returns:
            Principal if a user with that primary email exists, None otherwise

        Raises:
            UpstreamFailureError: If the provider is unreachable or errors
        """
        items = await run_in_threadpool(self._search_users, email)
        for data in items:
            primary = data.get("primary_email") or ""
            if primary.lower() == email.lower():
                return Principal(
                    id=data["id"],
                    primary_email=primary,
                    display_name=data.get("display_name"),
                    is_restricted=not data.get("primary_email_verified", False),
                )
        return None
