"""Google OAuth provider."""
import httpx

from interview_reader.services.auth.base import OAuthProfile, OAuthProvider


class GoogleOAuthProvider(OAuthProvider):
    name = "google"
    authorize_endpoint = "https://accounts.google.com/o/oauth2/v2/auth"
    token_endpoint = "https://oauth2.googleapis.com/token"
    profile_endpoint = "https://www.googleapis.com/oauth2/v1/userinfo"
    scopes = "email profile"

    def authorization_params(self) -> dict:
        params = super().authorization_params()
        params["access_type"] = "offline"
        return params

    async def get_profile(
        self, client: httpx.AsyncClient, access_token: str
    ) -> OAuthProfile:
        profile = await self._get_json(client, self.profile_endpoint, access_token)
        return OAuthProfile(
            provider=self.name,
            id=str(profile.get("id") or ""),
            email=profile.get("email") or "",
            name=profile.get("name") or "",
            avatar=profile.get("picture") or "",
        )
