"""
Dashboard API routes for the admin overview.
"""

from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .models import ContentStatus, Message, MessageStatus, Project
from .routes_auth import Principal, require_admin
from .schemas import MessageRead

router = APIRouter(prefix="/api/admin/dashboard", tags=["dashboard"], dependencies=[Depends(require_admin)])


def views_change_label(current: int, previous: int, total: int) -> str:
    """Month-over-month summary line shown under the total views card."""
    if previous > 0:
        change = (current - previous) / previous * 100
        sign = "+" if change >= 0 else ""
        return f"{sign}{change:.1f}% from last month"
    if current > 0:
        return f"{current} views this month"
    if total > 0:
        return f"{total} total views"
    return "No data yet"


async def _views_between(session: AsyncSession, user_id, start: datetime, end: datetime | None = None) -> int:
    stmt = select(func.coalesce(func.sum(Project.view_count), 0)).where(
        Project.user_id == user_id, Project.created_at >= start
    )
    if end is not None:
        stmt = stmt.where(Project.created_at < end)
    return int(await session.scalar(stmt) or 0)


@router.get("")
async def get_dashboard(
    principal: Principal = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Totals for the dashboard overview cards."""
    user_id = principal.user_id
    now = datetime.now(timezone.utc)
    last_month = now - timedelta(days=30)
    two_months_ago = now - timedelta(days=60)

    totals = (
        await session.execute(
            select(
                func.count(Project.id),
                func.coalesce(func.sum(Project.view_count), 0),
                func.count(Project.id).filter(Project.status == ContentStatus.published.value),
                func.count(Project.id).filter(Project.featured.is_(True)),
            ).where(Project.user_id == user_id)
        )
    ).one()
    total_projects, total_views, published, featured = totals

    unread = await session.scalar(
        select(func.count(Message.id)).where(
            Message.user_id == user_id, Message.status == MessageStatus.unread.value
        )
    )
    res = await session.execute(
        select(Message).where(Message.user_id == user_id).order_by(Message.created_at.desc()).limit(3)
    )
    recent_messages: List[MessageRead] = [MessageRead.model_validate(m) for m in res.scalars().all()]

    current_views = await _views_between(session, user_id, last_month)
    previous_views = await _views_between(session, user_id, two_months_ago, last_month)

    return {
        "total_projects": total_projects,
        "published_projects": published,
        "featured_projects": featured,
        "total_views": int(total_views),
        "unread_messages": unread or 0,
        "recent_messages": [m.model_dump(mode="json") for m in recent_messages],
        "views_change": views_change_label(current_views, previous_views, int(total_views)),
    }
