"""
Portal — Google OAuth 2.0 authorization-code exchange.

Flow:
  1. Frontend constructs the Google authorize URL and redirects the user.
  2. Google redirects back to the frontend callback page with ?code=...
  3. Frontend POSTs { code, redirectUri } to /auth/oauth/google.
  4. This module exchanges the code for tokens, fetches the profile and
     returns a normalized OAuthUserInfo.  Role resolution happens in
     portal.auth.resolver, not here.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from portal.exceptions import InvalidCredentials

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OAuthUserInfo:
    provider: str           # "google"
    provider_id: str        # Google "sub"
    email: str
    full_name: str
    email_verified: bool


_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
_GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"


def _json_object(response: httpx.Response) -> dict:
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError("expected a JSON object")
    return body


async def exchange_google_code(
    *,
    code: str,
    redirect_uri: str,
    client_id: str,
    client_secret: str,
) -> OAuthUserInfo:
    """
    Exchange a Google authorization code for user info.

    Raises InvalidCredentials on any failure (bad code, network error,
    unverified email) so the caller doesn't need provider-specific handling.
    """
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            token_resp = await client.post(
                _GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
            if token_resp.status_code != 200:
                logger.warning("Google token exchange failed: %s", token_resp.status_code)
                raise InvalidCredentials()

            access_token = _json_object(token_resp).get("access_token")
            if not access_token:
                raise InvalidCredentials()

            info_resp = await client.get(
                _GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Google OAuth request failed: %s", exc)
        raise InvalidCredentials() from exc

    if info_resp.status_code != 200:
        raise InvalidCredentials()

    try:
        info = _json_object(info_resp)
    except ValueError as exc:
        logger.warning("Google userinfo response unreadable: %s", exc)
        raise InvalidCredentials() from exc

    email = info.get("email")
    sub = info.get("sub")
    # An unverified Google email could claim someone else's account.
    if not email or not sub or not info.get("email_verified", False):
        raise InvalidCredentials()

    return OAuthUserInfo(
        provider="google",
        provider_id=sub,
        email=email,
        full_name=info.get("name") or email.split("@")[0],
        email_verified=True,
    )
