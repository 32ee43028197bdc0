"""
Request access gate.

Every request is classified by path area and principal state before any
handler runs. First matching rule wins:

  admin area + anonymous      -> login, with the requested path as return target
  admin area + non-admin      -> home (silent, no message)
  admin area + admin          -> allow
  auth area  + admin          -> admin home
  auth area  + non-admin      -> home
  anything else               -> allow

decide() is pure; access_gate_middleware() only gathers its inputs.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse

from .routes_auth import Principal, PrincipalState, database_oracle, decode_claims, read_token, resolve_principal
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


class GateAction(str, Enum):
    allow = "allow"
    login = "login"
    home = "home"
    admin = "admin"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    location: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.action is GateAction.allow


ALLOW = GateDecision(GateAction.allow)


def path_in_area(path: str, prefixes: Iterable[str]) -> bool:
    """Whole-segment prefix match: /dashboard covers /dashboard/x but not /dashboards."""
    for prefix in prefixes:
        prefix = prefix.rstrip("/")
        if path == prefix or path.startswith(prefix + "/"):
            return True
    return False


def decide(path: str, principal: Principal, settings: Settings | None = None) -> GateDecision:
    settings = settings or get_settings()
    state = principal.state

    if path_in_area(path, settings.admin_path_prefixes):
        if state is PrincipalState.anonymous:
            query = urlencode({settings.login_redirect_param: path})
            return GateDecision(GateAction.login, f"{settings.login_path}?{query}")
        if state is PrincipalState.authenticated:
            return GateDecision(GateAction.home, settings.home_path)
        return ALLOW

    if path_in_area(path, settings.auth_path_prefixes):
        if state is PrincipalState.admin:
            return GateDecision(GateAction.admin, settings.admin_home_path)
        if state is PrincipalState.authenticated:
            return GateDecision(GateAction.home, settings.home_path)

    return ALLOW


async def access_gate_middleware(request: Request, call_next):
    settings = get_settings()
    oracle = getattr(request.app.state, "admin_oracle", database_oracle)
    claims = decode_claims(await read_token(request, settings), settings)
    principal = await resolve_principal(claims, oracle)
    request.state.principal = principal

    decision = decide(request.url.path, principal, settings)
    if decision.allowed:
        return await call_next(request)
    logger.info(f"[gate] {request.method} {request.url.path} ({principal.state.value}) -> {decision.location}")
    return RedirectResponse(decision.location, status_code=307)
