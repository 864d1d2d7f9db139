import random

from passlib.context import CryptContext

from portal.auth.constants import OTP_LENGTH

context = CryptContext(schemes=["argon2"], deprecated="auto")

# Verified against whenever there is no stored hash, so a miss still costs one argon2 verify.
_DUMMY_HASH = context.hash("portal-dummy-password")


def hash_password(password: str) -> str:
    return context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    # OTP-only and Google-provisioned accounts have no hash to compare against.
    if not hashed:
        context.verify(plain, _DUMMY_HASH)
        return False
    return context.verify(plain, hashed)


def generate_otp() -> str:
    """Return a zero-padded numeric code from the OS CSPRNG."""
    upper = 10**OTP_LENGTH - 1
    return f"{random.SystemRandom().randint(0, upper):0{OTP_LENGTH}d}"


def normalize_email(email: str) -> str:
    return email.strip().lower()
