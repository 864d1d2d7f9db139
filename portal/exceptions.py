"""
Portal — domain-specific HTTP exceptions.

All exceptions use preset status codes and detail messages so that callers
never need to specify these at the call site.  The shared exception handler
renders them into the standard failure body; exceptions that describe an
account state also set ``account_status`` so the body carries ``status``.
"""
from fastapi import HTTPException, status


class MisconfiguredSigningKey(RuntimeError):
    """Raised at start-up when the session signing key is missing or a placeholder."""


# ── Authentication ────────────────────────────────────────────────────────────

class InvalidCredentials(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials.",
        )


class TokenInvalid(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDenied(HTTPException):
    def __init__(self, detail: str = "You do not have access to this resource.") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class AccountLocked(HTTPException):
    """Raised when the account is temporarily locked after too many failed logins."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=(
                "This account has been temporarily locked after too many failed login "
                "attempts. Please try again in 30 minutes."
            ),
        )


# ── Account state ─────────────────────────────────────────────────────────────

class UserNotFound(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No account exists for these credentials.",
        )


class AccountPendingApproval(HTTPException):
    """Doctor proved their password but an admin has not approved them yet."""

    account_status = "pending"

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is pending approval by an administrator.",
        )


class AccountRejected(HTTPException):
    account_status = "rejected"

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your registration was not approved. Please contact support.",
        )


# ── Registration / conflict ───────────────────────────────────────────────────

class EmailAlreadyExists(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists.",
        )


class PhoneAlreadyExists(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this phone number already exists.",
        )


# ── OTP ───────────────────────────────────────────────────────────────────────

class InvalidOrExpiredOTP(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired OTP.",
        )


class OTPAttemptsExhausted(HTTPException):
    """All verify attempts used up; the patient must request a new code."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Too many invalid attempts. Please request a new OTP.",
        )


class SMSDeliveryFailed(HTTPException):
    """The SMS provider failed to deliver the OTP."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="SMS delivery is temporarily unavailable. Please try again shortly.",
        )


# ── Approval / administration ─────────────────────────────────────────────────

class DoctorNotFound(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Doctor not found.",
        )


class ApprovalAlreadyDecided(HTTPException):
    """Approval is one-way: approved and rejected doctors cannot be re-decided."""

    def __init__(self, current_status: str) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"This doctor has already been {current_status}.",
        )
        self.account_status = current_status


class AdminNotFound(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Admin not found.",
        )


class OAuthNotConfigured(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google sign-in is not configured.",
        )
