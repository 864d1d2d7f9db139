import enum

# ── Session cookie ────────────────────────────────────────────────────────────
AUTH_COOKIE_NAME: str = "authToken"
SESSION_TOKEN_EXPIRE_SECONDS: int = 86_400 * 7  # 7 days, non-renewable

# ── Patient OTP ───────────────────────────────────────────────────────────────
OTP_LENGTH: int = 6
OTP_EXPIRE_SECONDS: int = 600  # 10 minutes
OTP_MAX_ATTEMPTS: int = 5

# ── Per-account login lockout ─────────────────────────────────────────────────
LOGIN_MAX_ATTEMPTS: int = 5
LOGIN_FAIL_WINDOW_SECONDS: int = 900   # 15 min
LOGIN_LOCK_SECONDS: int = 1800         # 30 min

# Signing keys that ship in sample configs and must never reach a running app.
PLACEHOLDER_SECRETS: frozenset[str] = frozenset(
    {"change-me", "changeme", "secret", "your-secret-key", "jwt-secret"}
)


# ── Doctor approval state machine ─────────────────────────────────────────────
class DoctorStatus(str, enum.Enum):
    PENDING = "pending"     # Registered or auto-provisioned, awaiting an admin
    APPROVED = "approved"   # Only state that yields the doctor role
    REJECTED = "rejected"   # Terminal; login denied, record retained


class ApprovalDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
