import logging
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from portal import database
from portal.admins.router import router as admins_router
from portal.admins.service import ensure_super_admin
from portal.approval.admin_router import router as approval_admin_router
from portal.auth.router import router as auth_router
from portal.auth.tokens import TokenCodec
from portal.config import FeatureFlags, Settings
from portal.exceptions import EmailAlreadyExists
from portal.logging_config import setup_logging
from portal.rate_limit import limiter
from portal.redis_client import close_redis_client
from portal.session.middleware import session_routing_middleware
from portal.surfaces.router import router as surfaces_router
from portal_shared.database import get_session
from portal_shared.middleware import (
    error_envelope_middleware,
    register_error_handlers,
    request_id_middleware,
)

logger = logging.getLogger(__name__)


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## CarePoint Portal — identity and session routing

* **Credentials** — password login for every role, phone OTP for patients,
  Google sign-in reconciled against the super-admin, admin and doctor stores.
* **Doctor approval** — new doctors are `pending` until an admin approves or
  rejects them; pending doctors can sign in to see their notice only.
* **Session routing** — role-scoped pages (`/admin/super`, `/admin/dashboard`,
  `/doctor/dashboard`, `/patient/dashboard`) are gated on the `authToken`
  cookie and redirect to the right login or landing page.

### Authentication
Successful logins set the `authToken` cookie (7 days, HttpOnly). API routes
also accept:
```
Authorization: Bearer <token>
```

### Error shape
```json
{ "success": false, "message": "Human-readable message", "status": "pending", "requestId": "..." }
```
`status` is only present for account-state errors.
"""

_TAGS_METADATA = [
    {"name": "auth", "description": "Login (password, OTP, Google), registration, logout and session introspection."},
    {"name": "admin-approval", "description": "**Admin only.** Doctor approval queue and decisions."},
    {"name": "superadmin-admins", "description": "**Super-admin only.** Manage admin accounts."},
    {"name": "surfaces", "description": "Role landing pages gated by the session middleware."},
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

@lru_cache
def get_settings() -> Settings:
    return Settings()


async def _bootstrap_super_admin(settings: Settings) -> None:
    if not (settings.bootstrap_superadmin_email and settings.bootstrap_superadmin_password):
        return
    async for session in get_session(database.get_session_factory()):
        try:
            await ensure_super_admin(
                session,
                email=settings.bootstrap_superadmin_email,
                password=settings.bootstrap_superadmin_password,
            )
        except EmailAlreadyExists:
            logger.error("Bootstrap super-admin email belongs to another account; skipped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if not database.is_initialized():
        database.init_db(settings.database_url)
    await _bootstrap_super_admin(settings)
    yield
    await close_redis_client()
    await database.dispose_db()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    # Fails fast on a missing or placeholder signing key.
    codec = TokenCodec(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        issuer=settings.jwt_issuer,
        lifetime_seconds=settings.session_expire_seconds,
    )
    features = FeatureFlags.from_settings(settings)
    if settings.otp_debug_echo and not features.debug_otp_echo:
        logger.warning("OTP_DEBUG_ECHO ignored in production")

    app = FastAPI(
        title="CarePoint Portal",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.token_codec = codec
    app.state.features = features

    # Attach rate limiter state before middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)

    # Middleware is applied in reverse-registration order (last added = outermost).
    # CORS must be outermost so ALL responses (including 429s) carry CORS headers.
    app.add_middleware(SlowAPIMiddleware)
    app.middleware("http")(session_routing_middleware)
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(approval_admin_router, prefix="/api/v1")
    app.include_router(admins_router, prefix="/api/v1")
    app.include_router(surfaces_router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="portal")

    logger.info("Portal app created (env=%s)", settings.env_name)
    return app


app = create_app()
