"""LinkedIn OAuth provider."""
import httpx

from interview_reader.exceptions import EmailUnavailableError
from interview_reader.services.auth.base import OAuthProfile, OAuthProvider


class LinkedInOAuthProvider(OAuthProvider):
    """
    LinkedIn login.

    The base profile call carries no email, so a second lookup against the
    email address endpoint is required. Basic scopes expose no avatar.
    """

    name = "linkedin"
    authorize_endpoint = "https://www.linkedin.com/oauth/v2/authorization"
    token_endpoint = "https://www.linkedin.com/oauth/v2/accessToken"
    profile_endpoint = "https://api.linkedin.com/v2/me"
    email_endpoint = (
        "https://api.linkedin.com/v2/emailAddress"
        "?q=members&projection=(elements*(handle~))"
    )
    scopes = "r_liteprofile r_emailaddress"

    @staticmethod
    def _email_from(payload: dict) -> str:
        try:
            email = payload["elements"][0]["handle~"]["emailAddress"]
        except (KeyError, IndexError, TypeError):
            email = None
        if not email:
            raise EmailUnavailableError("Unable to retrieve email from LinkedIn")
        return email

    async def get_profile(
        self, client: httpx.AsyncClient, access_token: str
    ) -> OAuthProfile:
        email_payload = await self._get_json(client, self.email_endpoint, access_token)
        email = self._email_from(email_payload)

        profile = await self._get_json(client, self.profile_endpoint, access_token)
        first = profile.get("localizedFirstName") or ""
        last = profile.get("localizedLastName") or ""
        return OAuthProfile(
            provider=self.name,
            id=str(profile.get("id") or ""),
            email=email,
            name=f"{first} {last}".strip(),
            avatar="",
        )
