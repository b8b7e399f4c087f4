"""
Signed access/refresh token issuing and verification.

Tokens are HS256 JWTs carrying the subject id (`_id`), a kind tag (`type`),
issuer, audience, expiry and a random `jti` so two tokens minted in the
same second never collide. Access and refresh tokens are signed with
separate secrets and are never accepted across kinds.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from interview_reader.config import settings
from interview_reader.exceptions import (
    CredentialExpiredError,
    CredentialMalformedError,
    CredentialWrongKindError,
)


logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """Issues and verifies access/refresh token pairs."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        issuer: str = "InterviewReader",
        audience: str = "InterviewReader-Users",
        algorithm: str = "HS256",
    ):
        self._secrets = {ACCESS: access_secret, REFRESH: refresh_secret}
        self._ttls = {ACCESS: access_ttl, REFRESH: refresh_ttl}
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, config=settings) -> "TokenService":
        return cls(
            access_secret=config.access_token_secret,
            refresh_secret=config.refresh_token_secret,
            access_ttl=timedelta(minutes=config.access_token_expire_minutes),
            refresh_ttl=timedelta(days=config.refresh_token_expire_days),
            issuer=config.token_issuer,
            audience=config.token_audience,
            algorithm=config.token_algorithm,
        )

    def issue(self, subject_id, kind: str) -> str:
        """Sign a single token of the given kind for the subject."""
        if not subject_id:
            raise ValueError("Subject id is required for token generation")
        if kind not in self._secrets:
            raise ValueError(f"Unknown token kind: {kind}")

        now = datetime.now(timezone.utc)
        payload = {
            "_id": str(subject_id),
            "type": kind,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + self._ttls[kind],
            "jti": secrets.token_hex(16),
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)

    def issue_pair(self, subject_id) -> TokenPair:
        return TokenPair(
            access_token=self.issue(subject_id, ACCESS),
            refresh_token=self.issue(subject_id, REFRESH),
        )

    def verify(self, token: str, expected_kind: str) -> dict:
        """
        Verify a token and return its payload.

        Raises:
            CredentialWrongKindError: token is of the other kind
            CredentialExpiredError: signature valid but expiry passed
            CredentialMalformedError: anything else wrong with the token
        """
        if expected_kind not in self._secrets:
            raise ValueError(f"Unknown token kind: {expected_kind}")
        if not token:
            raise CredentialMalformedError()

        # Kind is checked before the signature since each kind has its own secret
        try:
            unverified = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise CredentialMalformedError(errors={"auth": str(e)}) from e
        if unverified.get("type") != expected_kind:
            raise CredentialWrongKindError(
                errors={"auth": f"Expected a {expected_kind} token"}
            )

        try:
            payload = jwt.decode(
                token,
                self._secrets[expected_kind],
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["exp", "iat", "_id"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise CredentialExpiredError(
                f"{expected_kind.capitalize()} token has expired",
                {"auth": "Token expired"},
            ) from e
        except jwt.PyJWTError as e:
            raise CredentialMalformedError(
                f"Invalid {expected_kind} token", {"auth": str(e)}
            ) from e

        if payload.get("type") != expected_kind:
            raise CredentialWrongKindError(
                errors={"auth": f"Expected a {expected_kind} token"}
            )
        return payload


def extract_token_from_header(auth_header: Optional[str]) -> Optional[str]:
    """Return the token part of a `Bearer <token>` Authorization header."""
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header[len("Bearer "):].strip() or None


def get_token_expiry(token: str) -> Optional[int]:
    """Read the `exp` claim without verifying the signature."""
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    return payload.get("exp")


def is_token_expired(token: str) -> bool:
    expiry = get_token_expiry(token)
    if not expiry:
        return True
    return datetime.now(timezone.utc).timestamp() >= expiry


def subject_from_access_token(token_service: TokenService, token: Optional[str]):
    """Best-effort subject lookup; returns None instead of raising."""
    if not token:
        return None
    try:
        return token_service.verify(token, ACCESS)["_id"]
    except (CredentialExpiredError, CredentialMalformedError, CredentialWrongKindError) as e:
        logger.info("Token verification failed: %s", e.message)
        return None


token_service = TokenService.from_settings()
