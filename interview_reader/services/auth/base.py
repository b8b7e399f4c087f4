"""Abstract base class for OAuth identity providers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from interview_reader.exceptions import (
    MissingAuthorizationCodeError,
    ProviderExchangeFailedError,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthProfile:
    """Provider profile normalized to the fields identity resolution needs."""

    provider: str
    id: str
    email: str
    name: str
    avatar: str = ""


class OAuthProvider(ABC):
    """
    Abstract OAuth provider adapter.

    Each provider knows its endpoints and how to turn its own profile
    response shape into an OAuthProfile. Route code only ever calls
    authorization_url() and fetch_profile(code).
    """

    name: str
    authorize_endpoint: str
    token_endpoint: str
    profile_endpoint: str
    scopes: str

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        # Injected in tests to stand in for the provider's HTTP API
        self.transport = transport

    def authorization_params(self) -> dict:
        return {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scopes,
        }

    def authorization_url(self) -> str:
        """URL the browser is redirected to for consent."""
        return f"{self.authorize_endpoint}?{urlencode(self.authorization_params())}"

    async def fetch_profile(self, code: Optional[str]) -> OAuthProfile:
        """
        Exchange an authorization code and fetch the normalized profile.

        Raises:
            MissingAuthorizationCodeError: no code was supplied
            ProviderExchangeFailedError: token or profile call failed
            EmailUnavailableError: provider returned no usable email
        """
        if not code:
            raise MissingAuthorizationCodeError(
                f"{self.name} OAuth: No authorization code received"
            )

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                access_token = await self.exchange_code(client, code)
                return await self.get_profile(client, access_token)
            except httpx.HTTPStatusError as e:
                raise ProviderExchangeFailedError(
                    f"{self.name} returned HTTP {e.response.status_code}",
                    upstream_status=e.response.status_code,
                    errors={"response": e.response.text[:500]},
                ) from e
            except httpx.RequestError as e:
                raise ProviderExchangeFailedError(
                    f"{self.name} request failed: {e}"
                ) from e
            except ValueError as e:
                # Undecodable JSON from the provider
                raise ProviderExchangeFailedError(
                    f"{self.name} returned an unreadable response"
                ) from e

    async def exchange_code(self, client: httpx.AsyncClient, code: str) -> str:
        """Swap the authorization code for a provider access token."""
        response = await client.post(
            self.token_endpoint,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
            },
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        return self._access_token_from(response.json())

    def _access_token_from(self, payload: dict) -> str:
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            error = payload.get("error") if isinstance(payload, dict) else None
            logger.error("%s token response had no access token: %s", self.name, error)
            raise ProviderExchangeFailedError(
                f"{self.name} did not return an access token",
                upstream_status=400 if error else None,
                errors={"error": error} if error else None,
            )
        return access_token

    async def _get_json(
        self, client: httpx.AsyncClient, url: str, access_token: str
    ) -> dict:
        response = await client.get(
            url, headers={"Authorization": f"Bearer {access_token}"}
        )
        response.raise_for_status()
        return response.json()

    @abstractmethod
    async def get_profile(
        self, client: httpx.AsyncClient, access_token: str
    ) -> OAuthProfile:
        """Fetch the provider's profile and normalize it."""
        pass
