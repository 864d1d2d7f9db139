"""
Portal — auth controller (request orchestration layer).

Responsibilities:
  - Receive validated input from the router.
  - Call service / resolver functions (which own business logic).
  - Mint session tokens through the injected codec.
  - Compose and return the response model.

Cookies are an HTTP concern and are set by the router.
"""
from __future__ import annotations

import logging

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from portal.auth.constants import DoctorStatus
from portal.auth.dependencies import GoogleExchange
from portal.auth.models import Doctor, Identity
from portal.auth.resolver import resolve_oauth_identity
from portal.auth.schemas import (
    AuthResponse,
    DoctorRegisterRequest,
    DoctorStatusResponse,
    LoginRequest,
    OAuthCallbackRequest,
    OTPRequestResponse,
    OTPRequestSchema,
    OTPVerifyRequest,
    PatientRegisterRequest,
    RegistrationResponse,
    SessionResponse,
    UserView,
)
from portal.auth.service import (
    authenticate,
    check_login_lock,
    clear_failed_logins,
    get_doctor_by_email,
    get_doctor_by_id,
    get_patient_by_phone,
    issue_otp_challenge,
    record_failed_login,
    record_login,
    register_doctor as register_doctor_service,
    register_patient as register_patient_service,
    verify_otp_challenge,
)
from portal.auth.tokens import TokenCodec
from portal.auth.utils import generate_otp, normalize_email
from portal.config import FeatureFlags, Settings
from portal.exceptions import (
    DoctorNotFound,
    InvalidCredentials,
    OAuthNotConfigured,
    SMSDeliveryFailed,
    UserNotFound,
)
from portal.sms.twilio import TwilioNotifier
from portal_shared.constants import Role
from portal_shared.models import CurrentSession

logger = logging.getLogger(__name__)

_OTP_SENT = "If this number is registered, a verification code has been sent."


def user_view(record: Identity) -> UserView:
    return UserView(
        id=record.id,
        role=record.role,
        email=getattr(record, "email", None),
        phone=getattr(record, "phone", None),
        full_name=record.full_name,
        status=record.status if isinstance(record, Doctor) else None,
    )


def _mask_phone(phone: str) -> str:
    return f"{phone[:3]}***{phone[-2:]}"


async def _deliver_otp(
    notifier: TwilioNotifier, phone: str, code: str, features: FeatureFlags
) -> None:
    if not notifier.is_configured:
        if features.production:
            logger.error("SMS notifier is not configured in production")
            raise SMSDeliveryFailed()
        logger.warning("SMS notifier not configured; OTP for %s not delivered", _mask_phone(phone))
        return
    if not await notifier.send_otp(phone, code):
        raise SMSDeliveryFailed()


# ── Password ──────────────────────────────────────────────────────────────────

async def login(
    session: AsyncSession,
    body: LoginRequest,
    codec: TokenCodec,
    redis: aioredis.Redis,
    features: FeatureFlags,
) -> AuthResponse:
    await check_login_lock(redis, body.role, body.identifier)

    try:
        identity = await authenticate(
            session, role=body.role, identifier=body.identifier, password=body.password
        )
    except UserNotFound:
        logger.warning("Password login for unknown %s account", body.role.value)
        await record_failed_login(redis, body.role, body.identifier)
        if features.reveal_unknown_accounts:
            raise
        raise InvalidCredentials() from None
    except InvalidCredentials:
        logger.warning("Password mismatch for %s account", body.role.value)
        if await record_failed_login(redis, body.role, body.identifier):
            logger.warning("%s account locked after repeated failures", body.role.value)
        raise

    await clear_failed_logins(redis, body.role, body.identifier)
    await record_login(session, identity)
    token = codec.issue(identity.id, identity.role)
    logger.info("Login succeeded: subject=%s role=%s", identity.id, identity.role.value)
    return AuthResponse(token=token, user=user_view(identity))


# ── Patient OTP ───────────────────────────────────────────────────────────────

async def otp_request(
    session: AsyncSession,
    body: OTPRequestSchema,
    notifier: TwilioNotifier,
    features: FeatureFlags,
) -> OTPRequestResponse:
    patient = await get_patient_by_phone(session, body.phone)
    if patient is None:
        if features.reveal_unknown_accounts:
            raise UserNotFound()
        logger.info("OTP requested for unregistered phone %s", _mask_phone(body.phone))
        return OTPRequestResponse(message=_OTP_SENT)

    plain_otp = generate_otp()
    await issue_otp_challenge(session, patient, plain_otp)
    await _deliver_otp(notifier, patient.phone, plain_otp, features)
    return OTPRequestResponse(
        message=_OTP_SENT,
        debug_otp=plain_otp if features.debug_otp_echo else None,
    )


async def otp_verify(
    session: AsyncSession,
    body: OTPVerifyRequest,
    codec: TokenCodec,
) -> AuthResponse:
    patient = await verify_otp_challenge(session, phone=body.phone, plain_otp=body.otp)
    await record_login(session, patient)
    token = codec.issue(patient.id, Role.PATIENT)
    logger.info("OTP login succeeded: subject=%s", patient.id)
    return AuthResponse(token=token, user=user_view(patient))


# ── Google OAuth ──────────────────────────────────────────────────────────────

async def oauth_google(
    session: AsyncSession,
    body: OAuthCallbackRequest,
    codec: TokenCodec,
    settings: Settings,
    exchange: GoogleExchange,
) -> AuthResponse:
    if not settings.google_client_id or not settings.google_client_secret:
        raise OAuthNotConfigured()

    info = await exchange(
        code=body.code,
        redirect_uri=body.redirect_uri,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
    )
    resolved = await resolve_oauth_identity(
        session,
        email=info.email,
        full_name=info.full_name,
        provider_id=info.provider_id,
    )
    await record_login(session, resolved.record)
    token = codec.issue(resolved.subject_id, resolved.role)
    logger.info(
        "Google sign-in: subject=%s role=%s created=%s",
        resolved.subject_id,
        resolved.role.value,
        resolved.created,
    )
    return AuthResponse(token=token, user=user_view(resolved.record))


# ── Registration ──────────────────────────────────────────────────────────────

async def register_doctor(
    session: AsyncSession,
    body: DoctorRegisterRequest,
) -> RegistrationResponse:
    doctor = await register_doctor_service(
        session,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        phone=body.phone,
        license_number=body.license_number,
        specialty=body.specialty,
    )
    logger.info("Doctor registered and awaiting approval: %s", doctor.id)
    return RegistrationResponse(
        message="Registration successful. Your account is pending approval.",
        user=user_view(doctor),
    )


async def register_patient(
    session: AsyncSession,
    body: PatientRegisterRequest,
    codec: TokenCodec,
    notifier: TwilioNotifier,
    features: FeatureFlags,
) -> RegistrationResponse:
    patient = await register_patient_service(
        session, phone=body.phone, password=body.password, full_name=body.full_name
    )

    if body.password:
        return RegistrationResponse(
            message="Registration successful.",
            user=user_view(patient),
            token=codec.issue(patient.id, Role.PATIENT),
        )

    plain_otp = generate_otp()
    await issue_otp_challenge(session, patient, plain_otp)
    await _deliver_otp(notifier, patient.phone, plain_otp, features)
    return RegistrationResponse(
        message="Registration successful. Enter the code sent to your phone.",
        user=user_view(patient),
        require_otp=True,
        debug_otp=plain_otp if features.debug_otp_echo else None,
    )


# ── Session / status ──────────────────────────────────────────────────────────

async def doctor_status(
    session: AsyncSession,
    email: str,
    claims: CurrentSession | None,
    features: FeatureFlags,
) -> DoctorStatusResponse:
    """
    A doctor's own session always sees the real status. Anonymous lookups by
    email get the real answer only when unknown accounts may be revealed;
    otherwise every email reads as ``pending``.
    """
    if claims is not None and claims.role in (Role.DOCTOR, Role.PENDING_DOCTOR):
        own = await get_doctor_by_id(session, claims.subject_id)
        if own is not None and own.email == normalize_email(email):
            return DoctorStatusResponse(email=own.email, status=own.status)

    if not features.reveal_unknown_accounts:
        return DoctorStatusResponse(email=normalize_email(email), status=DoctorStatus.PENDING)

    doctor = await get_doctor_by_email(session, email)
    if doctor is None:
        raise DoctorNotFound()
    return DoctorStatusResponse(email=doctor.email, status=doctor.status)


def current_session(claims: CurrentSession) -> SessionResponse:
    return SessionResponse(
        subject_id=claims.subject_id,
        role=claims.role,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
        pending_approval=claims.pending_approval,
    )
