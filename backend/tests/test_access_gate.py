"""Tests for the request access gate and principal resolution."""

from __future__ import annotations

import uuid

import pytest

from portfolio.access_gate import GateAction, decide, path_in_area
from portfolio.routes_auth import ANONYMOUS, Principal, PrincipalState, decode_claims, resolve_principal
from portfolio.settings import get_settings

from tests.conftest import ADMIN_ID, USER_ID, auth_headers, make_token

NON_ADMIN = Principal(user_id=USER_ID, authenticated=True)
ADMIN = Principal(user_id=ADMIN_ID, authenticated=True, is_admin=True)


@pytest.mark.parametrize(
    "principal, path, action, location",
    [
        (ANONYMOUS, "/dashboard/projects", GateAction.login, "/auth/login?redirectTo=%2Fdashboard%2Fprojects"),
        (NON_ADMIN, "/dashboard/projects", GateAction.home, "/"),
        (ADMIN, "/dashboard/projects", GateAction.allow, None),
        (ANONYMOUS, "/auth/login", GateAction.allow, None),
        (NON_ADMIN, "/auth/login", GateAction.home, "/"),
        (ADMIN, "/auth/signup", GateAction.admin, "/dashboard"),
    ],
)
def test_gate_decision_table(principal, path, action, location) -> None:
    decision = decide(path, principal)
    assert decision.action is action
    assert decision.location == location


@pytest.mark.parametrize("principal", [ANONYMOUS, NON_ADMIN, ADMIN])
@pytest.mark.parametrize("path", ["/", "/blog/hello-world", "/api/projects", "/dashboards"])
def test_public_paths_always_allowed(principal, path) -> None:
    assert decide(path, principal).allowed


def test_admin_api_is_part_of_admin_area() -> None:
    assert decide("/api/admin/settings", NON_ADMIN).action is GateAction.home
    assert decide("/api/admin/settings", ADMIN).allowed


def test_path_in_area_matches_whole_segments() -> None:
    assert path_in_area("/dashboard", ["/dashboard"])
    assert path_in_area("/dashboard/", ["/dashboard/"])
    assert path_in_area("/dashboard/blog/new", ["/dashboard"])
    assert not path_in_area("/dashboards", ["/dashboard"])
    assert not path_in_area("/", ["/dashboard", "/auth"])


def test_principal_states() -> None:
    assert ANONYMOUS.state is PrincipalState.anonymous
    assert NON_ADMIN.state is PrincipalState.authenticated
    assert ADMIN.state is PrincipalState.admin


def test_decode_claims_rejects_bad_tokens() -> None:
    settings = get_settings()
    assert decode_claims(None, settings) is None
    assert decode_claims("not-a-jwt", settings) is None
    assert decode_claims(make_token(USER_ID, aud="someone-else"), settings) is None
    assert decode_claims(make_token(USER_ID), settings)["sub"] == str(USER_ID)


@pytest.mark.asyncio
async def test_resolve_principal_without_claims_is_anonymous() -> None:
    async def oracle(user_id):
        raise AssertionError("oracle must not be consulted")

    assert await resolve_principal(None, oracle) is ANONYMOUS


@pytest.mark.asyncio
async def test_resolve_principal_uses_oracle() -> None:
    async def oracle(user_id):
        return user_id == ADMIN_ID

    admin = await resolve_principal({"sub": str(ADMIN_ID)}, oracle)
    user = await resolve_principal({"sub": str(USER_ID)}, oracle)
    assert admin.state is PrincipalState.admin
    assert user.state is PrincipalState.authenticated
    assert user.user_id == USER_ID


@pytest.mark.asyncio
async def test_oracle_failure_fails_closed() -> None:
    async def oracle(user_id):
        raise ConnectionError("database unavailable")

    principal = await resolve_principal({"sub": str(ADMIN_ID)}, oracle)
    assert principal.authenticated
    assert not principal.is_admin
    assert decide("/dashboard", principal).action is GateAction.home


@pytest.mark.asyncio
async def test_malformed_subject_is_non_admin() -> None:
    async def oracle(user_id):
        raise AssertionError("oracle must not be consulted")

    principal = await resolve_principal({"sub": "not-a-uuid"}, oracle)
    assert principal.state is PrincipalState.authenticated
    assert principal.user_id is None


# Middleware


@pytest.mark.asyncio
async def test_anonymous_dashboard_request_redirects_to_login(client) -> None:
    resp = await client.get("/dashboard/projects")
    assert resp.status_code == 307
    assert resp.headers["location"] == "/auth/login?redirectTo=%2Fdashboard%2Fprojects"


@pytest.mark.asyncio
async def test_non_admin_is_silently_sent_home(client, user_profile) -> None:
    resp = await client.get("/api/admin/projects", headers=auth_headers(USER_ID))
    assert resp.status_code == 307
    assert resp.headers["location"] == "/"
    assert resp.content == b""


@pytest.mark.asyncio
async def test_admin_reaches_admin_api(client, admin_profile) -> None:
    resp = await client.get("/api/admin/projects", headers=auth_headers(ADMIN_ID))
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_admin_on_auth_page_goes_to_dashboard(client, admin_profile) -> None:
    resp = await client.get("/auth/login", headers=auth_headers(ADMIN_ID))
    assert resp.status_code == 307
    assert resp.headers["location"] == "/dashboard"


@pytest.mark.asyncio
async def test_session_cookie_is_accepted(client, admin_profile) -> None:
    client.cookies.set(get_settings().session_cookie_name, make_token(ADMIN_ID))
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 200
    assert resp.json()["state"] == "admin"


@pytest.mark.asyncio
async def test_oracle_outage_never_grants_admin(client, admin_profile, procedures) -> None:
    procedures.failing.add("is_admin")
    resp = await client.get("/api/admin/projects", headers=auth_headers(ADMIN_ID))
    assert resp.status_code == 307
    assert resp.headers["location"] == "/"


@pytest.mark.asyncio
async def test_me_reports_anonymous(client) -> None:
    resp = await client.get("/api/auth/me")
    assert resp.json() == {"state": "anonymous", "user_id": None, "is_admin": False}


@pytest.mark.asyncio
async def test_unknown_user_id_in_token_is_non_admin(client) -> None:
    resp = await client.get("/api/auth/me", headers=auth_headers(uuid.uuid4()))
    assert resp.json()["state"] == "authenticated"


@pytest.mark.asyncio
async def test_non_bearer_header_falls_back_to_cookie(client, admin_profile) -> None:
    client.cookies.set(get_settings().session_cookie_name, make_token(ADMIN_ID))
    resp = await client.get("/api/auth/me", headers={"Authorization": "Basic dXNlcjpwYXNz"})
    assert resp.json()["state"] == "admin"


@pytest.mark.asyncio
async def test_bearer_header_wins_over_cookie(client, admin_profile, user_profile) -> None:
    client.cookies.set(get_settings().session_cookie_name, make_token(ADMIN_ID))
    resp = await client.get("/api/auth/me", headers=auth_headers(USER_ID))
    assert resp.json()["state"] == "authenticated"
    assert resp.json()["user_id"] == str(USER_ID)
