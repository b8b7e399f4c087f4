from urllib.parse import urlparse

from pydantic_settings import BaseSettings


PLACEHOLDER_MARKERS = ("your_", "changeme")
MIN_SECRET_LENGTH = 32


class ConfigurationError(ValueError):
    """Raised at startup when required settings are missing or unusable."""


class Settings(BaseSettings):
    environment: str = "development"
    database_url: str = ""
    client_url: str = ""

    # Token settings
    access_token_secret: str = ""
    refresh_token_secret: str = ""
    access_token_expire_minutes: int = 60 * 24  # 1 day
    refresh_token_expire_days: int = 10
    token_issuer: str = "InterviewReader"
    token_audience: str = "InterviewReader-Users"
    token_algorithm: str = "HS256"

    # OAuth providers
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    github_client_id: str = ""
    github_client_secret: str = ""
    github_redirect_uri: str = ""
    linkedin_client_id: str = ""
    linkedin_client_secret: str = ""
    linkedin_redirect_uri: str = ""
    oauth_http_timeout: float = 10.0

    # Session settings
    max_sessions_per_user: int = 3
    session_validation: bool = True
    update_last_used: bool = True

    # Periodic cleanup
    session_cleanup_enabled: bool = False
    session_cleanup_interval_hours: float = 1.0
    session_cleanup_max_attempts: int = 3
    session_cleanup_base_delay: float = 1.0  # seconds

    validate_on_startup: bool = True

    class Config:
        env_file = ".env"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_samesite(self) -> str:
        return "none" if self.is_production else "lax"

    @property
    def access_token_max_age(self) -> int:
        """Access token lifetime in seconds."""
        return self.access_token_expire_minutes * 60

    @property
    def refresh_token_max_age(self) -> int:
        """Refresh token lifetime in seconds."""
        return self.refresh_token_expire_days * 86400

    @property
    def cleanup_should_run(self) -> bool:
        return self.is_production or self.session_cleanup_enabled

    def validate_required(self) -> None:
        """
        Fail fast on missing, placeholder or weak configuration.

        Raises:
            ConfigurationError: listing every offending variable
        """
        required = [
            "database_url",
            "client_url",
            "access_token_secret",
            "refresh_token_secret",
            "google_client_id",
            "google_client_secret",
            "google_redirect_uri",
            "github_client_id",
            "github_client_secret",
            "github_redirect_uri",
            "linkedin_client_id",
            "linkedin_client_secret",
            "linkedin_redirect_uri",
        ]

        missing = []
        placeholders = []
        for name in required:
            value = getattr(self, name)
            if not value:
                missing.append(name.upper())
            elif any(marker in value.lower() for marker in PLACEHOLDER_MARKERS):
                placeholders.append(name.upper())

        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        if placeholders:
            raise ConfigurationError(
                "Invalid placeholder values in environment variables: "
                f"{', '.join(placeholders)}"
            )

        for name in ("access_token_secret", "refresh_token_secret"):
            if len(getattr(self, name)) < MIN_SECRET_LENGTH:
                raise ConfigurationError(
                    f"{name.upper()} must be at least {MIN_SECRET_LENGTH} characters long"
                )

        for name in (
            "client_url",
            "google_redirect_uri",
            "github_redirect_uri",
            "linkedin_redirect_uri",
        ):
            parsed = urlparse(getattr(self, name))
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigurationError(
                    f"Invalid URL format in environment variable {name.upper()}"
                )


settings = Settings()
