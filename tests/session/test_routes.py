import uuid
from datetime import datetime, timedelta, timezone

import pytest

from portal.auth.tokens import TokenCodec
from portal.session.routes import (
    LANDING_PATHS,
    ROUTE_TABLE,
    Action,
    RouteRule,
    classify,
    decide,
    landing_path,
)
from portal_shared.constants import Role

T0 = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

# prefix → roles admitted; every other role is sent to its own landing page.
EXPECTED = {
    "/admin/super": {Role.SUPERADMIN},
    "/admin/dashboard": {Role.ADMIN},
    "/doctor/dashboard": {Role.DOCTOR, Role.PENDING_DOCTOR},
    "/patient/dashboard": {Role.PATIENT},
}
LOGIN = {
    "/admin/super": "/admin/login",
    "/admin/dashboard": "/admin/login",
    "/doctor/dashboard": "/doctor/login",
    "/patient/dashboard": "/patient/login",
}


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec("route-table-test-key")


def _token(codec: TokenCodec, role: Role) -> str:
    return codec.issue(uuid.uuid4(), role, now=T0)


@pytest.mark.parametrize("prefix", list(EXPECTED))
@pytest.mark.parametrize("suffix", ["", "/", "/appointments", "/a/b/c"])
@pytest.mark.parametrize("role", list(Role))
def test_every_path_role_pair(codec: TokenCodec, prefix: str, suffix: str, role: Role) -> None:
    path = prefix + suffix
    decision = decide(path, _token(codec, role), codec, now=T0)

    if role in EXPECTED[prefix]:
        assert decision.action is Action.ALLOW
        assert decision.session.role is role
        assert decision.pending_approval is (role is Role.PENDING_DOCTOR)
    else:
        assert decision.action is Action.REDIRECT
        assert decision.location == LANDING_PATHS[role]


@pytest.mark.parametrize("prefix", list(EXPECTED))
def test_missing_token_redirects_to_login(codec: TokenCodec, prefix: str) -> None:
    decision = decide(prefix + "/x", None, codec, now=T0)
    assert decision.action is Action.REDIRECT
    assert decision.location == LOGIN[prefix]


@pytest.mark.parametrize("prefix", list(EXPECTED))
def test_invalid_token_behaves_like_missing(codec: TokenCodec, prefix: str) -> None:
    decision = decide(prefix, "garbage.token.value", codec, now=T0)
    assert decision.action is Action.REDIRECT
    assert decision.location == LOGIN[prefix]


@pytest.mark.parametrize("prefix", list(EXPECTED))
def test_expired_token_behaves_like_missing(codec: TokenCodec, prefix: str) -> None:
    token = _token(codec, Role.SUPERADMIN)
    decision = decide(prefix, token, codec, now=T0 + timedelta(days=8))
    assert decision.action is Action.REDIRECT
    assert decision.location == LOGIN[prefix]


@pytest.mark.parametrize(
    "path",
    ["/", "/about", "/admin/login", "/doctor/login", "/patient/login", "/doctor/pending",
     "/admin/superb", "/api/v1/auth/login", "/health"],
)
def test_unclassified_paths_pass_through(codec: TokenCodec, path: str) -> None:
    assert classify(path) is None
    assert decide(path, None, codec).action is Action.PASS


@pytest.mark.parametrize("role", list(Role))
def test_landing_surface_admits_its_role(codec: TokenCodec, role: Role) -> None:
    # A redirect to the landing page must never bounce again.
    decision = decide(landing_path(role), _token(codec, role), codec, now=T0)
    assert decision.action is Action.ALLOW


def test_every_role_has_a_landing_surface() -> None:
    assert set(LANDING_PATHS) == set(Role)
    assert landing_path(None) == "/"


def test_longest_prefix_wins() -> None:
    table = (
        RouteRule("/admin", frozenset({Role.ADMIN}), "/admin/login"),
        RouteRule("/admin/super", frozenset({Role.SUPERADMIN}), "/admin/login"),
    )
    assert classify("/admin/super/settings", table).prefix == "/admin/super"
    assert classify("/admin/users", table).prefix == "/admin"


def test_superadmin_is_not_implicitly_admin(codec: TokenCodec) -> None:
    decision = decide("/admin/dashboard", _token(codec, Role.SUPERADMIN), codec, now=T0)
    assert decision.action is Action.REDIRECT
    assert decision.location == "/admin/super"


def test_route_table_prefixes_are_unique() -> None:
    prefixes = [rule.prefix for rule in ROUTE_TABLE]
    assert len(prefixes) == len(set(prefixes))
