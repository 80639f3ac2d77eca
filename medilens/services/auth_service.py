# medilens/services/auth_service.py
import logging
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medilens import models
from medilens.core.config import Settings
from medilens.schemas.user import UserOut

logger = logging.getLogger(__name__)

LOCAL_USER = UserOut(id="local-user", email="local-user@medilens.local", name="Local User")


class AuthError(Exception):
    pass


class AuthService:
    """
    Identity from the external auth service. Tokens are verified here; signing
    users up or in happens elsewhere.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.AUTH_JWT_SECRET)

    def decode_token(self, token: str) -> UserOut:
        options = {"verify_aud": bool(self.settings.AUTH_JWT_AUDIENCE)}
        try:
            payload = jwt.decode(
                token,
                self.settings.AUTH_JWT_SECRET,
                algorithms=[self.settings.AUTH_JWT_ALGORITHM],
                audience=self.settings.AUTH_JWT_AUDIENCE or None,
                options=options,
            )
        except JWTError as exc:
            raise AuthError(f"Invalid token: {exc}") from exc

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            raise AuthError("Token is missing the subject or email claim")
        metadata = payload.get("user_metadata") or {}
        name = metadata.get("name") or metadata.get("full_name") or "User"
        return UserOut(id=str(user_id), email=email, name=name)

    def authenticate(self, authorization: Optional[str]) -> UserOut:
        if not self.enabled:
            return LOCAL_USER
        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthError("Missing bearer token")
        user = self.decode_token(token.strip())
        self.ensure_profile(user)
        return user

    def ensure_profile(self, user: UserOut):
        try:
            profile = self.db.get(models.Profile, user.id)
            if profile is None:
                self.db.add(models.Profile(id=user.id, email=user.email, name=user.name))
                self.db.commit()
            elif profile.email != user.email or profile.name != user.name:
                profile.email = user.email
                profile.name = user.name
                self.db.commit()
        except SQLAlchemyError:
            # identity still comes from the token
            logger.exception("Could not sync profile for user %s", user.id)
            self.db.rollback()
