"""Turn optional session credentials into user identifiers."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from ..config import Settings
from ..errors import StorageUnavailable
from .users import UserStore

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Decode bearer tokens issued for ReelHub users.

    ``resolve`` never raises. A missing, malformed, expired or forged token and
    a token for a user that no longer exists all come back as ``None``; callers
    only ever see "identified" or "anonymous".
    """

    def __init__(self, settings: Settings, users: UserStore):
        self._settings = settings
        self._users = users

    def create_access_token(
        self, user_id: int, *, expires_in: timedelta | None = None
    ) -> str:
        """Sign a token whose subject is ``user_id``."""

        now = datetime.now(timezone.utc)
        lifetime = expires_in or timedelta(
            minutes=self._settings.access_token_expire_minutes
        )
        payload = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
        }
        return jwt.encode(
            payload,
            self._settings.auth_secret,
            algorithm=self._settings.auth_algorithm,
        )

    def decode_user_id(self, credential: str | None) -> int | None:
        """Return the user id carried by ``credential`` without touching storage."""

        token = self._extract_token(credential)
        if token is None:
            return None
        try:
            claims = jwt.decode(
                token,
                self._settings.auth_secret,
                algorithms=[self._settings.auth_algorithm],
            )
        except JWTError as exc:
            logger.debug("Rejected credential: %s", exc)
            return None

        subject = claims.get("sub")
        try:
            user_id = int(subject)
        except (TypeError, ValueError):
            logger.debug("Credential subject %r is not a user id", subject)
            return None
        if user_id <= 0:
            return None
        return user_id

    async def resolve(self, credential: str | None) -> int | None:
        """Return the id of an existing user for ``credential``, if any."""

        user_id = self.decode_user_id(credential)
        if user_id is None:
            return None
        try:
            user = await self._users.get(user_id)
        except StorageUnavailable as exc:
            logger.warning("Could not confirm user %s, treating as anonymous: %s", user_id, exc)
            return None
        if user is None:
            logger.debug("Credential refers to unknown user %s", user_id)
            return None
        return user.id

    @staticmethod
    def _extract_token(credential: str | None) -> str | None:
        if not credential:
            return None
        value = credential.strip()
        scheme, _, remainder = value.partition(" ")
        if remainder:
            if scheme.lower() != "bearer":
                return None
            value = remainder.strip()
        return value or None
