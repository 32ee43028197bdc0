"""
Owner profile and social links.

The public site shows the admin owner's profile. The admin API edits the
caller's own profile (created on first access) and its ordered social links.
"""
from __future__ import annotations

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .models import Profile, SocialLink
from .routes_auth import Principal, require_admin
from .schemas import (
    ProfileRead,
    ProfileUpdate,
    PublicProfileRead,
    SocialLinkCreate,
    SocialLinkRead,
    SocialLinkUpdate,
)
from .services import revalidate, rpc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["profile"])
admin_router = APIRouter(prefix="/api/admin", tags=["profile"], dependencies=[Depends(require_admin)])

SessionDep = Depends(get_session)
PROFILE_PATHS = ("/", "/dashboard/settings")

DEFAULT_TITLE = "Full Stack Developer"
DEFAULT_BIO = "Passionate developer building modern web applications."


async def _social_links(session: AsyncSession, user_id: uuid.UUID) -> list[SocialLink]:
    res = await session.execute(
        select(SocialLink).where(SocialLink.user_id == user_id).order_by(SocialLink.position, SocialLink.created_at)
    )
    return list(res.scalars().all())


async def get_or_create_profile(session: AsyncSession, user_id: uuid.UUID) -> Profile:
    profile = await session.get(Profile, user_id, populate_existing=True)
    if profile:
        return profile
    profile = Profile(id=user_id, title=DEFAULT_TITLE, bio=DEFAULT_BIO)
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    logger.info(f"[profile] created profile for {user_id}")
    return profile


async def _get_own_link_or_404(session: AsyncSession, link_id: uuid.UUID, owner_id: uuid.UUID) -> SocialLink:
    link = await session.get(SocialLink, link_id, populate_existing=True)
    if not link or link.user_id != owner_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Social link not found")
    return link


@router.get("/profile", response_model=PublicProfileRead)
async def get_public_profile(session: AsyncSession = SessionDep):
    res = await session.execute(
        select(Profile).where(Profile.is_admin.is_(True)).order_by(Profile.created_at).limit(1)
    )
    profile = res.scalar_one_or_none()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    data = ProfileRead.model_validate(profile).model_dump()
    links = [SocialLinkRead.model_validate(link) for link in await _social_links(session, profile.id)]
    return PublicProfileRead(**data, social_links=links)


@admin_router.get("/profile", response_model=ProfileRead)
async def get_own_profile(principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep):
    return await get_or_create_profile(session, principal.user_id)


@admin_router.patch("/profile", response_model=ProfileRead)
async def update_own_profile(
    data: ProfileUpdate, principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep
):
    profile = await get_or_create_profile(session, principal.user_id)
    for field, value in data.changes().items():
        setattr(profile, field, value)
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    revalidate.invalidate(*PROFILE_PATHS)
    return profile


@admin_router.post("/users/{user_id}/make-admin", status_code=status.HTTP_204_NO_CONTENT)
async def make_user_admin(user_id: uuid.UUID, session: AsyncSession = SessionDep):
    if not await session.get(Profile, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    await rpc.make_admin(session, user_id)
    await session.commit()
    logger.info(f"[profile] granted admin to {user_id}")
    revalidate.invalidate("/dashboard/settings")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Social links


@admin_router.get("/social-links", response_model=List[SocialLinkRead])
async def list_social_links(principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep):
    return await _social_links(session, principal.user_id)


@admin_router.post("/social-links", response_model=SocialLinkRead, status_code=status.HTTP_201_CREATED)
async def create_social_link(
    data: SocialLinkCreate, principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep
):
    await get_or_create_profile(session, principal.user_id)
    position = data.position
    if position is None:
        count = await session.scalar(select(func.count(SocialLink.id)).where(SocialLink.user_id == principal.user_id))
        position = count or 0
    link = SocialLink(
        user_id=principal.user_id, platform=data.platform.strip(), label=data.label, url=data.url, position=position
    )
    session.add(link)
    await session.commit()
    await session.refresh(link)
    revalidate.invalidate(*PROFILE_PATHS)
    return link


@admin_router.patch("/social-links/{link_id}", response_model=SocialLinkRead)
async def update_social_link(
    link_id: uuid.UUID,
    data: SocialLinkUpdate,
    principal: Principal = Depends(require_admin),
    session: AsyncSession = SessionDep,
):
    link = await _get_own_link_or_404(session, link_id, principal.user_id)
    for field, value in data.changes().items():
        setattr(link, field, value)
    session.add(link)
    await session.commit()
    await session.refresh(link)
    revalidate.invalidate(*PROFILE_PATHS)
    return link


@admin_router.delete("/social-links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_social_link(
    link_id: uuid.UUID, principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep
):
    link = await _get_own_link_or_404(session, link_id, principal.user_id)
    await session.delete(link)
    await session.commit()
    revalidate.invalidate(*PROFILE_PATHS)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
