"""
Portal — auth router.

Only HTTP concerns live here:
  - Route declarations, HTTP methods, status codes, response_model
  - Dependency injection (session, codec, redis, notifier, current session)
  - The authToken cookie
  - Forwarding to the controller

Zero business logic. Zero DB queries.
"""
import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth import controller as ctrl
from portal.auth.constants import AUTH_COOKIE_NAME
from portal.auth.dependencies import (
    GoogleExchange,
    get_current_session,
    get_features,
    get_google_exchange,
    get_optional_session,
    get_otp_notifier,
    get_redis,
    get_settings,
    get_token_codec,
)
from portal.auth.schemas import (
    AuthResponse,
    DoctorRegisterRequest,
    DoctorStatusResponse,
    LoginRequest,
    MessageResponse,
    OAuthCallbackRequest,
    OTPRequestResponse,
    OTPRequestSchema,
    OTPVerifyRequest,
    PatientRegisterRequest,
    RegistrationResponse,
    SessionResponse,
)
from portal.auth.tokens import TokenCodec
from portal.config import FeatureFlags, Settings
from portal.database import get_db
from portal.rate_limit import (
    LOGIN_LIMIT,
    OTP_REQUEST_LIMIT,
    OTP_VERIFY_LIMIT,
    REGISTRATION_LIMIT,
    limiter,
)
from portal.sms.twilio import TwilioNotifier
from portal_shared.models import CurrentSession

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(
    response: Response, token: str, codec: TokenCodec, features: FeatureFlags
) -> None:
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        max_age=codec.lifetime_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=features.production,
    )


# ── Password ──────────────────────────────────────────────────────────────────

@router.post(
    "/login",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    summary="Login with identifier + password for a given role",
)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    session: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    features: FeatureFlags = Depends(get_features),
    redis: aioredis.Redis = Depends(get_redis),
) -> AuthResponse:
    result = await ctrl.login(session, body, codec, redis, features)
    _set_session_cookie(response, result.token, codec, features)
    return result


# ── Patient OTP ───────────────────────────────────────────────────────────────

@router.post(
    "/otp/request",
    response_model=OTPRequestResponse,
    response_model_exclude_none=True,
    summary="Send a 6-digit login code to a registered patient's phone",
)
@limiter.limit(OTP_REQUEST_LIMIT)
async def otp_request(
    request: Request,
    body: OTPRequestSchema,
    session: AsyncSession = Depends(get_db),
    notifier: TwilioNotifier = Depends(get_otp_notifier),
    features: FeatureFlags = Depends(get_features),
) -> OTPRequestResponse:
    return await ctrl.otp_request(session, body, notifier, features)


@router.post(
    "/otp/verify",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    summary="Exchange a patient OTP for a session",
)
@limiter.limit(OTP_VERIFY_LIMIT)
async def otp_verify(
    request: Request,
    response: Response,
    body: OTPVerifyRequest,
    session: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    features: FeatureFlags = Depends(get_features),
) -> AuthResponse:
    result = await ctrl.otp_verify(session, body, codec)
    _set_session_cookie(response, result.token, codec, features)
    return result


# ── Google OAuth ──────────────────────────────────────────────────────────────

@router.post(
    "/oauth/google",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    summary="Sign in with a Google authorization code",
)
@limiter.limit(LOGIN_LIMIT)
async def oauth_google(
    request: Request,
    response: Response,
    body: OAuthCallbackRequest,
    session: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
    features: FeatureFlags = Depends(get_features),
    exchange: GoogleExchange = Depends(get_google_exchange),
) -> AuthResponse:
    result = await ctrl.oauth_google(session, body, codec, settings, exchange)
    _set_session_cookie(response, result.token, codec, features)
    return result


# ── Registration ──────────────────────────────────────────────────────────────

@router.post(
    "/register/doctor",
    response_model=RegistrationResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Register a doctor (pending approval, no session issued)",
)
@limiter.limit(REGISTRATION_LIMIT)
async def register_doctor(
    request: Request,
    body: DoctorRegisterRequest,
    session: AsyncSession = Depends(get_db),
) -> RegistrationResponse:
    return await ctrl.register_doctor(session, body)


@router.post(
    "/register/patient",
    response_model=RegistrationResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Register a patient with a password, or OTP-only",
)
@limiter.limit(REGISTRATION_LIMIT)
async def register_patient(
    request: Request,
    response: Response,
    body: PatientRegisterRequest,
    session: AsyncSession = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    notifier: TwilioNotifier = Depends(get_otp_notifier),
    features: FeatureFlags = Depends(get_features),
) -> RegistrationResponse:
    result = await ctrl.register_patient(session, body, codec, notifier, features)
    if result.token:
        _set_session_cookie(response, result.token, codec, features)
    return result


# ── Session ───────────────────────────────────────────────────────────────────

@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Clear the session cookie",
)
async def logout(
    response: Response,
    features: FeatureFlags = Depends(get_features),
) -> MessageResponse:
    # Tokens are not revocable; the cookie is the only client-held copy we control.
    response.delete_cookie(
        AUTH_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=features.production,
    )
    return MessageResponse(message="Signed out.")


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Claims of the presented session token",
)
async def current_session(
    claims: CurrentSession = Depends(get_current_session),
) -> SessionResponse:
    return ctrl.current_session(claims)


@router.get(
    "/doctor/status",
    response_model=DoctorStatusResponse,
    summary="Approval status for the doctor pending/rejected pages",
)
async def doctor_status(
    email: EmailStr = Query(...),
    session: AsyncSession = Depends(get_db),
    claims: CurrentSession | None = Depends(get_optional_session),
    features: FeatureFlags = Depends(get_features),
) -> DoctorStatusResponse:
    return await ctrl.doctor_status(session, email, claims, features)
