"""
Stored procedures exposed by the record store.

Every server-side procedure the application relies on goes through
call_rpc(); the SQL bodies live in the 0002_rpc_functions migration.

  is_admin(user_id)                 -> bool
  make_admin(target_user_id)        -> void
  update_site_settings(patch jsonb) -> site_settings row
  increment_view_count(project_id)  -> void
  increment_blog_view_count(post_id)-> void
"""
from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

PROCEDURES = frozenset(
    {
        "is_admin",
        "make_admin",
        "update_site_settings",
        "increment_view_count",
        "increment_blog_view_count",
    }
)


class UnknownProcedure(ValueError):
    pass


async def call_rpc(session: AsyncSession, name: str, **params: Any) -> list[dict]:
    """Invoke a whitelisted procedure with named arguments and return its rows."""
    if name not in PROCEDURES:
        raise UnknownProcedure(name)
    args = ", ".join(f"{key} => :{key}" for key in params)
    result = await session.execute(text(f"SELECT * FROM {name}({args})"), params)
    return [dict(row) for row in result.mappings().all()]


async def is_admin(session: AsyncSession, user_id: uuid.UUID) -> bool:
    rows = await call_rpc(session, "is_admin", user_id=user_id)
    return bool(rows and next(iter(rows[0].values())))


async def make_admin(session: AsyncSession, target_user_id: uuid.UUID) -> None:
    await call_rpc(session, "make_admin", target_user_id=target_user_id)


async def update_site_settings(session: AsyncSession, patch: dict) -> dict:
    rows = await call_rpc(session, "update_site_settings", patch=json.dumps(patch))
    if not rows:
        raise LookupError("update_site_settings returned no row")
    return rows[0]


async def increment_view_count(session: AsyncSession, project_id: uuid.UUID) -> None:
    await call_rpc(session, "increment_view_count", project_id=project_id)


async def increment_blog_view_count(session: AsyncSession, post_id: uuid.UUID) -> None:
    await call_rpc(session, "increment_blog_view_count", post_id=post_id)
