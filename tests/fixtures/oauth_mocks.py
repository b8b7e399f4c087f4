"""
Fake OAuth provider APIs for testing the login flow.

FakeProviderAPI is an httpx.MockTransport handler that answers the token,
profile and email endpoints of Google, GitHub and LinkedIn. Configure
profiles and failures per test by setting attributes on the instance.
"""

from typing import Dict, List, Optional

import httpx

from interview_reader.services.auth import Provider
from interview_reader.services.auth.github_provider import GitHubOAuthProvider
from interview_reader.services.auth.google_provider import GoogleOAuthProvider
from interview_reader.services.auth.linkedin_provider import LinkedInOAuthProvider


PROVIDER_CLASSES = {
    Provider.google: GoogleOAuthProvider,
    Provider.github: GitHubOAuthProvider,
    Provider.linkedin: LinkedInOAuthProvider,
}


class FakeProviderAPI:
    def __init__(self):
        self.google_profile: Dict = {
            "id": "google-123",
            "email": "jane@example.com",
            "name": "Jane Doe",
            "picture": "https://example.com/jane.png",
        }
        self.github_profile: Dict = {
            "id": 4242,
            "login": "janedoe",
            "email": "jane@example.com",
            "name": "Jane Doe",
            "avatar_url": "https://avatars.example.com/4242",
        }
        self.linkedin_profile: Dict = {
            "id": "li-777",
            "localizedFirstName": "Jane",
            "localizedLastName": "Doe",
        }
        self.linkedin_email: Optional[str] = "jane@example.com"

        # Failure simulation
        self.token_status: int = 200
        self.token_body: Optional[Dict] = None
        self.profile_status: int = 200
        self.raise_error: Optional[Exception] = None

        # Recorded requests for assertions
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error:
            raise self.raise_error

        if request.method == "POST":
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "bad_code"})
            return httpx.Response(
                200, json=self.token_body or {"access_token": "provider-access-token"}
            )

        if self.profile_status != 200:
            return httpx.Response(self.profile_status, json={"message": "denied"})

        host, path = request.url.host, request.url.path
        if host == "www.googleapis.com":
            return httpx.Response(200, json=self.google_profile)
        if host == "api.github.com":
            return httpx.Response(200, json=self.github_profile)
        if path == "/v2/emailAddress":
            elements = []
            if self.linkedin_email:
                elements = [{"handle~": {"emailAddress": self.linkedin_email}}]
            return httpx.Response(200, json={"elements": elements})
        if path == "/v2/me":
            return httpx.Response(200, json=self.linkedin_profile)
        return httpx.Response(404)

    def provider(self, provider):
        """Build the adapter for a provider, talking to this fake API."""
        provider = Provider(provider)
        return PROVIDER_CLASSES[provider](
            client_id=f"{provider.value}-client-id",
            client_secret=f"{provider.value}-client-secret",
            redirect_uri=f"http://testserver/auth/{provider.value}/callback",
            transport=httpx.MockTransport(self),
        )
