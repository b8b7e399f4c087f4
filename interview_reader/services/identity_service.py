"""User identity resolution and account linking across OAuth providers."""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from interview_reader.exceptions import DuplicateIdentityError, InvalidInputError
from interview_reader.models.user import PROVIDERS, User


logger = logging.getLogger(__name__)


class IdentityService:
    """
    Finds or creates the unified user for a provider identity.

    Matching prefers the provider id over the email: if one user already
    holds this provider id and a different user holds this email, the
    provider-id holder wins. A user matched only by email gets the
    provider id backfilled, which is how accounts are linked across
    providers. Email equality is trusted as proof of identity; email
    verification is left to the providers.
    """

    def find_existing_user(
        self, db: DBSession, provider: str, provider_id: str, email: str
    ) -> Optional[User]:
        column = getattr(User, User.provider_column(provider))
        user = db.query(User).filter(column == provider_id).first()
        if user:
            return user
        return db.query(User).filter(User.email == email.strip().lower()).first()

    async def resolve(
        self,
        db: DBSession,
        provider: str,
        provider_id: str,
        email: str,
        name: str,
        avatar: Optional[str] = None,
    ) -> User:
        """
        Return the user for this identity, creating or linking as needed.

        Raises:
            InvalidInputError: provider, provider id or email missing
            DuplicateIdentityError: creation collided with an existing user
            ValidationFailureError: profile fields failed model validation
        """
        if not provider or not provider_id or not email:
            raise InvalidInputError(
                "Missing required identity parameters",
                {
                    "provider": bool(provider),
                    "id": bool(provider_id),
                    "email": bool(email),
                },
            )
        if provider not in PROVIDERS:
            raise InvalidInputError(f"Unsupported provider: {provider}")

        provider_id = str(provider_id)
        user = self.find_existing_user(db, provider, provider_id, email)

        if user is None:
            return self._create_user(db, provider, provider_id, email, name, avatar)

        current = user.get_provider_id(provider)
        if not current:
            user.set_provider_id(provider, provider_id)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise DuplicateIdentityError(
                    f"{provider} account is already linked to another user"
                ) from e
            db.refresh(user)
            logger.info("Linked %s account to existing user %s", provider, user.id)
        elif current != provider_id:
            logger.warning(
                "User %s matched by email already has a different %s id; keeping it",
                user.id,
                provider,
            )
        return user

    def _create_user(
        self,
        db: DBSession,
        provider: str,
        provider_id: str,
        email: str,
        name: str,
        avatar: Optional[str],
    ) -> User:
        user = User(email=email, name=name, avatar=avatar or "")
        user.set_provider_id(provider, provider_id)
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateIdentityError(errors={"email": email}) from e
        db.refresh(user)
        logger.info("Created new user %s via %s", user.id, provider)
        return user


# Singleton instance
identity_service = IdentityService()
