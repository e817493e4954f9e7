"""
OAuth token handling for the reception API.

Tokens come from the authority's identity provider with the password grant
and are cached until shortly before they expire; a refresh token is used
when one is available.
"""

import asyncio
import time

import httpx

from facturacr.config import get_logger
from facturacr.core.exceptions import AuthenticationError, ConfigurationError
from facturacr.infrastructure.hacienda.base import BaseHaciendaClient

logger = get_logger(__name__)

# Renew this many seconds before the token actually expires
EXPIRY_MARGIN = 30


class HaciendaTokenProvider(BaseHaciendaClient):
    """Issues and caches bearer tokens for the reception API."""

    def __init__(
        self,
        token_url: str,
        client_id: str,
        username: str,
        password: str,
        timeout: float = 30,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout=timeout, max_retries=max_retries, transport=transport)
        self.token_url = token_url
        self.client_id = client_id
        self.username = username
        self.password = password

        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._expires_at: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return bool(self.token_url and self.client_id and self.username and self.password)

    def invalidate(self) -> None:
        self._access_token = None
        self._expires_at = 0.0

    async def get_token(self) -> str:
        """
        Get a valid access token.

        Raises:
            ConfigurationError: credentials missing
            AuthenticationError: the identity provider refused the request
        """
        if not self.is_configured:
            raise ConfigurationError("Hacienda credentials are not configured")

        async with self._lock:
            if self._access_token and time.monotonic() < self._expires_at:
                return self._access_token

            data = {"client_id": self.client_id}
            if self._refresh_token:
                data.update(grant_type="refresh_token", refresh_token=self._refresh_token)
            else:
                data.update(
                    grant_type="password",
                    username=self.username,
                    password=self.password,
                )

            try:
                payload = await self._with_retry(self._request_token, data)
            except AuthenticationError:
                if not self._refresh_token:
                    raise
                # Refresh token expired; start over with the password grant
                self._refresh_token = None
                payload = await self._with_retry(
                    self._request_token,
                    {
                        "client_id": self.client_id,
                        "grant_type": "password",
                        "username": self.username,
                        "password": self.password,
                    },
                )

            self._access_token = payload["access_token"]
            self._refresh_token = payload.get("refresh_token")
            expires_in = int(payload.get("expires_in", 300))
            self._expires_at = time.monotonic() + max(expires_in - EXPIRY_MARGIN, 0)

            logger.info("hacienda_token_issued", expires_in=expires_in)
            return self._access_token

    async def _request_token(self, data: dict) -> dict:
        async with self._client() as client:
            response = await client.post(
                self.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )

        if response.status_code != 200:
            raise AuthenticationError(f"HTTP {response.status_code}: {response.text[:200]}")

        payload = response.json()
        if not payload.get("access_token"):
            raise AuthenticationError("response without access_token")
        return payload
