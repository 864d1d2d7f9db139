"""
Portal — auth FastAPI dependencies.

Process-wide collaborators (settings, token codec, feature flags) are built
once in create_app() and read from app.state here, so routes never construct
them and tests can swap them through dependency_overrides.
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portal.auth.constants import AUTH_COOKIE_NAME
from portal.auth.oauth import OAuthUserInfo, exchange_google_code
from portal.auth.tokens import TokenCodec
from portal.config import FeatureFlags, Settings
from portal.exceptions import PermissionDenied, TokenInvalid
from portal.redis_client import get_redis_client
from portal.sms.twilio import TwilioNotifier
from portal_shared.constants import Role
from portal_shared.models import CurrentSession

http_bearer = HTTPBearer(auto_error=False)

GoogleExchange = Callable[..., Awaitable[OAuthUserInfo]]


# ── Process-wide collaborators ────────────────────────────────────────────────

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_features(request: Request) -> FeatureFlags:
    return request.app.state.features


def get_redis(settings: Settings = Depends(get_settings)) -> aioredis.Redis:
    return get_redis_client(settings.redis_url)


def get_otp_notifier(settings: Settings = Depends(get_settings)) -> TwilioNotifier:
    return TwilioNotifier(settings)


def get_google_exchange() -> GoogleExchange:
    return exchange_google_code


# ── Session dependencies ──────────────────────────────────────────────────────

async def get_optional_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    codec: TokenCodec = Depends(get_token_codec),
) -> CurrentSession | None:
    """Claims from the Bearer header, else the authToken cookie; None if absent or bad."""
    token = credentials.credentials if credentials else request.cookies.get(AUTH_COOKIE_NAME)
    return codec.verify(token)


async def get_current_session(
    claims: CurrentSession | None = Depends(get_optional_session),
) -> CurrentSession:
    if claims is None:
        raise TokenInvalid()
    return claims


# ── Role guards ───────────────────────────────────────────────────────────────

def require_roles(*roles: Role) -> Callable[..., Awaitable[CurrentSession]]:
    """Build a dependency that admits only the listed roles (no implied hierarchy)."""
    allowed = frozenset(roles)

    async def _guard(claims: CurrentSession = Depends(get_current_session)) -> CurrentSession:
        if claims.role not in allowed:
            raise PermissionDenied()
        return claims

    return _guard


require_admin = require_roles(Role.ADMIN, Role.SUPERADMIN)
require_super_admin = require_roles(Role.SUPERADMIN)
