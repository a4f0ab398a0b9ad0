"""HTTP client for the Kinde Management API.

Authenticates as an M2M application using the OAuth2 client-credentials
grant and issues JSON requests against ``{domain}/api/v1``.  Unlike
best-effort clients, every failure is raised as
:class:`ManagementAPIError` so that workflow handlers can let the
runtime's failure policy decide what happens next.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from kinde_workflows.config import Settings

logger = logging.getLogger(__name__)

# Refresh the cached token this many seconds before it actually expires.
_TOKEN_EXPIRY_SKEW_SECONDS = 60.0


class ManagementAPIError(Exception):
    """Raised when a Management API call fails.

    ``status_code`` is ``None`` for transport-level failures (DNS,
    connection reset, timeout) where no response was received.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ManagementAPIClient:
    """Thin async wrapper around the Management API.

    Parameters
    ----------
    domain:
        Business domain root, e.g. ``https://myapp.kinde.com``.
    client_id:
        M2M application client ID.
    client_secret:
        M2M application client secret.
    timeout:
        Per-request timeout in seconds.  Ignored when ``http_client``
        is supplied.
    http_client:
        Optional ``httpx.AsyncClient`` for testing.  A client passed in
        is not closed by :meth:`close`.
    """

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        timeout: float = 10.0,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._domain = domain.rstrip("/")
        self._client_id = client_id
        self._client_secret = client_secret
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._access_token: str | None = None
        self._token_expires_at = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> ManagementAPIClient:
        """Build a client from workflow settings.

        Raises
        ------
        ConfigurationError
            If the domain or M2M credentials are missing.
        """
        settings.require_management_api()
        assert settings.domain is not None
        assert settings.m2m_client_id is not None
        assert settings.m2m_client_secret is not None
        return cls(
            settings.domain,
            settings.m2m_client_id,
            settings.m2m_client_secret.get_secret_value(),
            timeout=settings.http_timeout,
        )

    @property
    def api_url(self) -> str:
        return f"{self._domain}/api/v1"

    # -- Requests ------------------------------------------------------------

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Issue ``GET /api/v1/{endpoint}`` and return the JSON body."""
        return await self._request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        """Issue ``POST /api/v1/{endpoint}`` and return the JSON body."""
        return await self._request("POST", endpoint, json=json)

    # -- Lifecycle -----------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying HTTP connection pool if this client owns it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ManagementAPIClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -- Internal helpers ----------------------------------------------------

    async def _get_access_token(self) -> str:
        """Return a cached M2M access token, fetching a new one when stale."""
        if self._access_token is not None and time.monotonic() < self._token_expires_at:
            return self._access_token

        try:
            response = await self._client.post(
                f"{self._domain}/oauth2/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "audience": f"{self._domain}/api",
                },
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise ManagementAPIError(
                f"Token request rejected with status {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            raise ManagementAPIError(f"Token request failed: {exc}") from exc
        except ValueError as exc:
            raise ManagementAPIError("Token response was not valid JSON") from exc

        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise ManagementAPIError("Token response did not include an access_token")

        try:
            expires_in = float(body.get("expires_in", 0))
        except (TypeError, ValueError) as exc:
            raise ManagementAPIError("Token response had an invalid expires_in") from exc
        self._access_token = token
        self._token_expires_at = time.monotonic() + max(expires_in - _TOKEN_EXPIRY_SKEW_SECONDS, 0.0)
        logger.debug("Obtained M2M access token (expires_in=%.0fs)", expires_in)
        return token

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        token = await self._get_access_token()
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ManagementAPIError(
                f"{method} {endpoint} returned {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            raise ManagementAPIError(f"{method} {endpoint} failed: {exc}") from exc

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as exc:
            raise ManagementAPIError(
                f"{method} {endpoint} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(body, dict):
            raise ManagementAPIError(
                f"{method} {endpoint} returned {type(body).__name__}, expected an object",
                status_code=response.status_code,
            )
        return body
