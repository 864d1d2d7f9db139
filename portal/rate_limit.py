"""
Global slowapi rate limiter.

Imported by the auth router for per-endpoint limits.  Mounted onto app.state
in main.py so the slowapi middleware can find it.

Storage: RATE_LIMIT_STORAGE_URI (e.g. redis://localhost:6379/1).  Defaults to
in-process memory, which is fine for a single worker.
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

LOGIN_LIMIT = "10/minute"
OTP_REQUEST_LIMIT = "3/10minutes"
OTP_VERIFY_LIMIT = "10/minute"
REGISTRATION_LIMIT = "5/hour"

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
)
