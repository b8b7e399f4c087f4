"""GitHub OAuth provider."""
import httpx

from interview_reader.services.auth.base import OAuthProfile, OAuthProvider


class GitHubOAuthProvider(OAuthProvider):
    """
    GitHub login.

    GitHub users may hide their email. Rather than failing the login, a
    placeholder address derived from the numeric GitHub id is used, so the
    account can still be created (it just won't link by email).
    """

    name = "github"
    authorize_endpoint = "https://github.com/login/oauth/authorize"
    token_endpoint = "https://github.com/login/oauth/access_token"
    profile_endpoint = "https://api.github.com/user"
    scopes = "user:email"

    @staticmethod
    def placeholder_email(github_id: str) -> str:
        return f"user{github_id}@github.com"

    async def exchange_code(self, client: httpx.AsyncClient, code: str) -> str:
        # GitHub expects JSON and answers 200 with an "error" field on bad codes
        response = await client.post(
            self.token_endpoint,
            json={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        return self._access_token_from(response.json())

    async def get_profile(
        self, client: httpx.AsyncClient, access_token: str
    ) -> OAuthProfile:
        profile = await self._get_json(client, self.profile_endpoint, access_token)
        github_id = str(profile.get("id") or "")
        return OAuthProfile(
            provider=self.name,
            id=github_id,
            email=profile.get("email") or self.placeholder_email(github_id),
            name=profile.get("name") or profile.get("login") or "",
            avatar=profile.get("avatar_url") or "",
        )
