"""
Authentication service package.

Provides one OAuth adapter per supported identity provider:
- Google
- GitHub (placeholder email when the profile hides it)
- LinkedIn (separate email lookup)

Usage:
    from interview_reader.services.auth import get_oauth_provider
    from interview_reader.services.auth.dependencies import get_current_user

    # In routes:
    @router.get("/protected")
    async def protected_route(user: User = Depends(get_current_user)):
        ...
"""
from enum import Enum

from interview_reader.config import settings
from interview_reader.services.auth.base import OAuthProfile, OAuthProvider
from interview_reader.services.auth.github_provider import GitHubOAuthProvider
from interview_reader.services.auth.google_provider import GoogleOAuthProvider
from interview_reader.services.auth.linkedin_provider import LinkedInOAuthProvider


class Provider(str, Enum):
    google = "google"
    github = "github"
    linkedin = "linkedin"


_PROVIDER_CLASSES = {
    Provider.google: GoogleOAuthProvider,
    Provider.github: GitHubOAuthProvider,
    Provider.linkedin: LinkedInOAuthProvider,
}


def get_oauth_provider(provider: Provider, config=settings) -> OAuthProvider:
    """
    Factory returning the configured adapter for a provider.

    Credentials are read from settings on every call so a reloaded
    configuration takes effect without a restart.
    """
    provider = Provider(provider)
    prefix = provider.value
    return _PROVIDER_CLASSES[provider](
        client_id=getattr(config, f"{prefix}_client_id"),
        client_secret=getattr(config, f"{prefix}_client_secret"),
        redirect_uri=getattr(config, f"{prefix}_redirect_uri"),
        timeout=config.oauth_http_timeout,
    )


__all__ = [
    "OAuthProfile",
    "OAuthProvider",
    "Provider",
    "get_oauth_provider",
]
