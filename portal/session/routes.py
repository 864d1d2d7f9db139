"""
Role-scoped route table and the routing decision.

The table is data: adding a surface means adding a RouteRule, not another
branch.  decide() is a pure function of (path, token, codec) so the whole
(path x role) matrix can be enumerated in tests without a running app.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from portal.auth.tokens import TokenCodec
from portal_shared.constants import Role
from portal_shared.models import CurrentSession

DEFAULT_LOGIN_PATH = "/"
DEFAULT_LANDING_PATH = "/"


@dataclass(frozen=True, slots=True)
class RouteRule:
    prefix: str
    allowed_roles: frozenset[Role]
    login_path: str

    def matches(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")


# Explicit allow-lists; a superadmin is not implicitly an admin.
ROUTE_TABLE: tuple[RouteRule, ...] = (
    RouteRule("/admin/super", frozenset({Role.SUPERADMIN}), "/admin/login"),
    RouteRule("/admin/dashboard", frozenset({Role.ADMIN}), "/admin/login"),
    RouteRule("/doctor/dashboard", frozenset({Role.DOCTOR, Role.PENDING_DOCTOR}), "/doctor/login"),
    RouteRule("/patient/dashboard", frozenset({Role.PATIENT}), "/patient/login"),
)

LANDING_PATHS: dict[Role, str] = {
    Role.SUPERADMIN: "/admin/super",
    Role.ADMIN: "/admin/dashboard",
    Role.DOCTOR: "/doctor/dashboard",
    Role.PENDING_DOCTOR: "/doctor/dashboard",
    Role.PATIENT: "/patient/dashboard",
}


def classify(path: str, table: tuple[RouteRule, ...] = ROUTE_TABLE) -> RouteRule | None:
    """Longest matching prefix wins; None means the path is not role-scoped."""
    matches = [rule for rule in table if rule.matches(path)]
    if not matches:
        return None
    return max(matches, key=lambda rule: len(rule.prefix))


def landing_path(role: Role | None) -> str:
    if role is None:
        return DEFAULT_LANDING_PATH
    return LANDING_PATHS.get(role, DEFAULT_LANDING_PATH)


class Action(str, enum.Enum):
    PASS = "pass"           # not role-scoped
    ALLOW = "allow"         # role-scoped and the session's role is allowed
    REDIRECT = "redirect"


@dataclass(frozen=True, slots=True)
class RoutingDecision:
    action: Action
    location: str | None = None
    session: CurrentSession | None = None

    @property
    def pending_approval(self) -> bool:
        return self.session is not None and self.session.pending_approval


def decide(
    path: str,
    token: str | None,
    codec: TokenCodec,
    *,
    now: datetime | None = None,
) -> RoutingDecision:
    rule = classify(path)
    if rule is None:
        return RoutingDecision(Action.PASS)

    claims = codec.verify(token, now=now)
    if claims is None:
        return RoutingDecision(Action.REDIRECT, location=rule.login_path)

    if claims.role in rule.allowed_roles:
        return RoutingDecision(Action.ALLOW, session=claims)

    return RoutingDecision(Action.REDIRECT, location=landing_path(claims.role))


def login_path_for(path: str) -> str:
    rule = classify(path)
    return rule.login_path if rule else DEFAULT_LOGIN_PATH
