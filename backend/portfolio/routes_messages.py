"""
Contact messages.

Anyone, including anonymous visitors, can leave a message for a profile.
Only the admin API reads them, moves them between unread/read/archived,
or deletes them.
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .models import Message, MessageStatus, Profile
from .routes_auth import Principal, require_admin
from .schemas import MessageCreate, MessageRead, MessageStatusUpdate
from .services import revalidate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["messages"])
admin_router = APIRouter(prefix="/api/admin", tags=["messages"], dependencies=[Depends(require_admin)])

SessionDep = Depends(get_session)
MESSAGES_PATH = "/dashboard/messages"


async def _get_own_message_or_404(session: AsyncSession, message_id: uuid.UUID, owner_id: uuid.UUID) -> Message:
    message = await session.get(Message, message_id, populate_existing=True)
    if not message or message.user_id != owner_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message


@router.post("/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
async def create_message(data: MessageCreate, session: AsyncSession = SessionDep):
    if not await session.get(Profile, data.recipient_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")
    message = Message(
        user_id=data.recipient_id,
        name=data.name.strip(),
        email=str(data.email),
        subject=data.subject,
        message=data.message,
        status=MessageStatus.unread.value,
    )
    session.add(message)
    await session.commit()
    await session.refresh(message)
    logger.info(f"[messages] new message {message.id} for {data.recipient_id}")
    revalidate.invalidate(MESSAGES_PATH)
    return message


@admin_router.get("/messages", response_model=List[MessageRead])
async def list_messages(
    status_filter: Optional[MessageStatus] = Query(default=None, alias="status"),
    limit: int = Query(default=200, ge=1, le=1000),
    principal: Principal = Depends(require_admin),
    session: AsyncSession = SessionDep,
):
    stmt = select(Message).where(Message.user_id == principal.user_id)
    if status_filter is not None:
        stmt = stmt.where(Message.status == status_filter.value)
    res = await session.execute(stmt.order_by(Message.created_at.desc()).limit(limit))
    return res.scalars().all()


@admin_router.patch("/messages/{message_id}", response_model=MessageRead)
async def update_message_status(
    message_id: uuid.UUID,
    data: MessageStatusUpdate,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = SessionDep,
):
    message = await _get_own_message_or_404(session, message_id, principal.user_id)
    message.status = data.status.value
    session.add(message)
    await session.commit()
    await session.refresh(message)
    revalidate.invalidate(MESSAGES_PATH)
    return message


@admin_router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: uuid.UUID, principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep
):
    message = await _get_own_message_or_404(session, message_id, principal.user_id)
    await session.delete(message)
    await session.commit()
    revalidate.invalidate(MESSAGES_PATH)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@admin_router.delete("/messages")
async def delete_read_messages(principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep):
    """Bulk-delete every read message of the current admin."""
    res = await session.execute(
        delete(Message)
        .where(Message.user_id == principal.user_id, Message.status == MessageStatus.read.value)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    revalidate.invalidate(MESSAGES_PATH)
    return {"deleted": res.rowcount}
