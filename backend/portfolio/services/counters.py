"""View counters. Increments always happen server-side; a failed bump is logged and dropped."""
from __future__ import annotations

import logging
import uuid
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.services import rpc

logger = logging.getLogger(__name__)


class CounterKind(str, Enum):
    project = "project"
    blog_post = "blog_post"


_PROCEDURES = {
    CounterKind.project: rpc.increment_view_count,
    CounterKind.blog_post: rpc.increment_blog_view_count,
}


async def bump(session: AsyncSession, kind: CounterKind, entity_id: uuid.UUID) -> bool:
    """Add one view to an entity. Returns False instead of raising when the increment fails."""
    try:
        await _PROCEDURES[kind](session, entity_id)
        await session.commit()
        return True
    except Exception as e:
        await session.rollback()
        logger.warning(f"[counter] {kind.value} {entity_id}: view bump failed: {e}")
        return False
