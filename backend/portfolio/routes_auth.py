"""
Session principal resolution.

Tokens are issued by the hosted identity provider; this module only verifies
them (shared-secret JWT) and asks the is_admin procedure whether the user
holds the administrator capability. The result is attached to the request
by the access gate and read by route dependencies.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer

from .db import session_scope
from .schemas import PrincipalRead
from .services import rpc
from .settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)

AdminOracle = Callable[[uuid.UUID], Awaitable[bool]]


class PrincipalState(str, Enum):
    anonymous = "anonymous"
    authenticated = "authenticated"
    admin = "admin"


@dataclass(frozen=True)
class Principal:
    user_id: Optional[uuid.UUID] = None
    authenticated: bool = False
    is_admin: bool = False

    @property
    def state(self) -> PrincipalState:
        if not self.authenticated:
            return PrincipalState.anonymous
        return PrincipalState.admin if self.is_admin else PrincipalState.authenticated


ANONYMOUS = Principal()


async def read_token(request: Request, settings: Settings) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    credentials = await security(request)
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


def decode_claims(token: Optional[str], settings: Settings) -> Optional[dict]:
    if not token:
        return None
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except jwt.InvalidTokenError as exc:
        logger.debug(f"[auth] rejected session token: {exc}")
        return None


async def database_oracle(user_id: uuid.UUID) -> bool:
    async with session_scope() as session:
        return await rpc.is_admin(session, user_id)


async def resolve_principal(claims: Optional[dict], oracle: AdminOracle) -> Principal:
    """Build the request principal. Any oracle failure yields a non-admin principal."""
    if claims is None:
        return ANONYMOUS
    try:
        user_id = uuid.UUID(str(claims.get("sub")))
    except ValueError:
        logger.warning(f"[auth] malformed subject claim {claims.get('sub')!r}, treating as non-admin")
        return Principal(authenticated=True)
    try:
        admin = bool(await oracle(user_id))
    except Exception as exc:
        logger.warning(f"[auth] is_admin check failed for {user_id}, treating as non-admin: {exc}")
        admin = False
    return Principal(user_id=user_id, authenticated=True, is_admin=admin)


def get_principal(request: Request) -> Principal:
    return getattr(request.state, "principal", ANONYMOUS)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    """Route dependency for the admin API; the gate has already redirected everyone else."""
    if not principal.is_admin or principal.user_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return principal


@router.get("/me", response_model=PrincipalRead)
async def get_current_principal(principal: Principal = Depends(get_principal)):
    return PrincipalRead(state=principal.state.value, user_id=principal.user_id, is_admin=principal.is_admin)

