from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .models import ContentStatus, GalleryItem
from .routes_auth import Principal, require_admin
from .schemas import GalleryItemCreate, GalleryItemRead, GalleryItemUpdate
from .services import revalidate
from .services.settings_writer import get_settings_row

router = APIRouter(prefix="/api", tags=["gallery"])
admin_router = APIRouter(prefix="/api/admin", tags=["gallery"], dependencies=[Depends(require_admin)])

SessionDep = Depends(get_session)
GALLERY_PATHS = ("/gallery", "/dashboard/gallery")


async def _get_item_or_404(session: AsyncSession, item_id: uuid.UUID) -> GalleryItem:
    item = await session.get(GalleryItem, item_id, populate_existing=True)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gallery item not found")
    return item


@router.get("/gallery", response_model=List[GalleryItemRead])
async def list_published_items(session: AsyncSession = SessionDep):
    site = await get_settings_row(session)
    if not site.enable_gallery:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gallery is disabled")
    res = await session.execute(
        select(GalleryItem)
        .where(GalleryItem.status == ContentStatus.published.value)
        .order_by(GalleryItem.position.asc(), GalleryItem.created_at.desc())
    )
    return res.scalars().all()


@admin_router.get("/gallery", response_model=List[GalleryItemRead])
async def list_items(principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep):
    res = await session.execute(
        select(GalleryItem).where(GalleryItem.user_id == principal.user_id).order_by(GalleryItem.position.asc())
    )
    return res.scalars().all()


@admin_router.post("/gallery", response_model=GalleryItemRead, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: GalleryItemCreate, principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep
):
    item = GalleryItem(user_id=principal.user_id, **data.model_dump(mode="json"))
    session.add(item)
    await session.commit()
    await session.refresh(item)
    revalidate.invalidate(*GALLERY_PATHS)
    return item


@admin_router.get("/gallery/{item_id}", response_model=GalleryItemRead)
async def get_item(item_id: uuid.UUID, session: AsyncSession = SessionDep):
    return await _get_item_or_404(session, item_id)


@admin_router.patch("/gallery/{item_id}", response_model=GalleryItemRead)
async def update_item(item_id: uuid.UUID, data: GalleryItemUpdate, session: AsyncSession = SessionDep):
    item = await _get_item_or_404(session, item_id)
    for field, value in data.changes().items():
        setattr(item, field, value)
    session.add(item)
    await session.commit()
    await session.refresh(item)
    revalidate.invalidate(*GALLERY_PATHS)
    return item


@admin_router.delete("/gallery/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: uuid.UUID, session: AsyncSession = SessionDep):
    item = await _get_item_or_404(session, item_id)
    await session.delete(item)
    await session.commit()
    revalidate.invalidate(*GALLERY_PATHS)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
