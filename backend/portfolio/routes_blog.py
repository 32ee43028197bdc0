from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .models import BlogPost, ContentStatus
from .routes_auth import Principal, require_admin
from .schemas import BlogPostCreate, BlogPostRead, BlogPostUpdate
from .services import revalidate
from .services.counters import CounterKind, bump
from .services.settings_writer import get_settings_row

router = APIRouter(prefix="/api", tags=["blog"])
admin_router = APIRouter(prefix="/api/admin", tags=["blog"], dependencies=[Depends(require_admin)])

SessionDep = Depends(get_session)
BLOG_PATHS = ("/blog", "/dashboard/blog")


def mark_published(post: BlogPost) -> None:
    """Stamp published_at on the first transition to published; later edits never clear it."""
    if post.status == ContentStatus.published.value and post.published_at is None:
        post.published_at = datetime.now(timezone.utc)


async def _get_post_or_404(session: AsyncSession, post_id: uuid.UUID) -> BlogPost:
    post = await session.get(BlogPost, post_id, populate_existing=True)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")
    return post


async def _ensure_blog_enabled(session: AsyncSession) -> None:
    site = await get_settings_row(session)
    if not site.enable_blog:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog is disabled")


async def _commit_or_conflict(session: AsyncSession, slug: str | None) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Slug already in use: {slug}") from exc


# Public


@router.get("/blog", response_model=List[BlogPostRead])
async def list_published_posts(session: AsyncSession = SessionDep):
    await _ensure_blog_enabled(session)
    res = await session.execute(
        select(BlogPost)
        .where(BlogPost.status == ContentStatus.published.value)
        .order_by(BlogPost.published_at.desc().nulls_last(), BlogPost.created_at.desc())
    )
    return res.scalars().all()


@router.get("/blog/{slug}", response_model=BlogPostRead)
async def get_published_post(slug: str, session: AsyncSession = SessionDep):
    await _ensure_blog_enabled(session)
    res = await session.execute(
        select(BlogPost).where(BlogPost.slug == slug, BlogPost.status == ContentStatus.published.value)
    )
    post = res.scalar_one_or_none()
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")
    result = BlogPostRead.model_validate(post)
    await bump(session, CounterKind.blog_post, post.id)
    return result


# Admin


@admin_router.get("/blog", response_model=List[BlogPostRead])
async def list_posts(principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep):
    res = await session.execute(
        select(BlogPost).where(BlogPost.user_id == principal.user_id).order_by(BlogPost.created_at.desc())
    )
    return res.scalars().all()


@admin_router.post("/blog", response_model=BlogPostRead, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: BlogPostCreate, principal: Principal = Depends(require_admin), session: AsyncSession = SessionDep
):
    post = BlogPost(
        user_id=principal.user_id,
        title=data.title,
        slug=data.slug,
        excerpt=data.excerpt,
        content=data.content,
        cover_image_url=data.cover_image_url,
        status=data.status.value,
        featured=data.featured,
        tags=data.tags,
    )
    mark_published(post)
    session.add(post)
    await _commit_or_conflict(session, data.slug)
    await session.refresh(post)
    revalidate.invalidate(*BLOG_PATHS)
    return post


@admin_router.get("/blog/{post_id}", response_model=BlogPostRead)
async def get_post(post_id: uuid.UUID, session: AsyncSession = SessionDep):
    return await _get_post_or_404(session, post_id)


@admin_router.patch("/blog/{post_id}", response_model=BlogPostRead)
async def update_post(post_id: uuid.UUID, data: BlogPostUpdate, session: AsyncSession = SessionDep):
    post = await _get_post_or_404(session, post_id)
    for field, value in data.changes().items():
        setattr(post, field, value)
    mark_published(post)
    session.add(post)
    await _commit_or_conflict(session, post.slug)
    await session.refresh(post)
    revalidate.invalidate(*BLOG_PATHS, f"/blog/{post.slug}")
    return post


@admin_router.delete("/blog/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: uuid.UUID, session: AsyncSession = SessionDep):
    post = await _get_post_or_404(session, post_id)
    await session.delete(post)
    await session.commit()
    revalidate.invalidate(*BLOG_PATHS)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
