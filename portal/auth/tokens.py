"""
Portal — session token codec.

Issues and verifies the signed, time-bounded token that carries
``{sub, role, iat, exp}``.  One codec is built per process from settings in
create_app() and handed to callers through app.state; nothing else reads the
signing key.

verify() never raises: cookies and headers are attacker-controlled input and
the session middleware must be able to treat "bad token" the same as "no
token".  require() is the raising variant for API dependencies.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt
from jose.exceptions import JOSEError

from portal.auth.constants import PLACEHOLDER_SECRETS, SESSION_TOKEN_EXPIRE_SECONDS
from portal.exceptions import MisconfiguredSigningKey, TokenInvalid
from portal_shared.constants import Role
from portal_shared.models import CurrentSession

logger = logging.getLogger(__name__)


class TokenCodec:
    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        issuer: str = "carepoint-portal",
        lifetime_seconds: int = SESSION_TOKEN_EXPIRE_SECONDS,
    ) -> None:
        if not secret or not secret.strip() or secret.strip().lower() in PLACEHOLDER_SECRETS:
            raise MisconfiguredSigningKey(
                "JWT_SECRET is empty or a placeholder; refusing to issue session tokens."
            )
        if lifetime_seconds <= 0:
            raise MisconfiguredSigningKey("Session lifetime must be positive.")
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer
        self._lifetime = timedelta(seconds=lifetime_seconds)

    @property
    def lifetime_seconds(self) -> int:
        return int(self._lifetime.total_seconds())

    def issue(
        self, subject_id: uuid.UUID, role: Role, *, now: datetime | None = None
    ) -> str:
        issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        payload = {
            "sub": str(subject_id),
            "role": Role(role).value,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._lifetime).timestamp()),
            "iss": self._issuer,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str | None, *, now: datetime | None = None) -> CurrentSession | None:
        if not token or not isinstance(token, str):
            return None
        try:
            # Expiry is checked below against an injectable clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"verify_exp": False, "verify_iat": False, "verify_aud": False},
            )
        except JOSEError:
            return None

        claims = _payload_to_session(payload)
        if claims is None:
            return None

        current = now or datetime.now(timezone.utc)
        if current >= claims.expires_at:
            return None
        return claims

    def require(self, token: str | None, *, now: datetime | None = None) -> CurrentSession:
        claims = self.verify(token, now=now)
        if claims is None:
            raise TokenInvalid()
        return claims


def _payload_to_session(payload: dict[str, Any]) -> CurrentSession | None:
    try:
        return CurrentSession(
            subject_id=uuid.UUID(payload["sub"]),
            role=Role(payload["role"]),
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError):
        logger.debug("Signed token with malformed claims rejected")
        return None
