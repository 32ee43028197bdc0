from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship as sa_relationship

from .db import Base

SITE_SETTINGS_KEY = True


def relationship(*args, **kwargs):
    """Wrap SQLAlchemy relationship to forbid lazy loading by default."""
    kwargs.setdefault("lazy", "raise")
    return sa_relationship(*args, **kwargs)


class ContentStatus(str, Enum):
    draft = "draft"
    published = "published"


class MediaType(str, Enum):
    image = "image"
    video = "video"


class MessageStatus(str, Enum):
    unread = "unread"
    read = "read"
    archived = "archived"


def _created_at() -> Mapped[datetime]:
    return mapped_column(sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)


def _updated_at() -> Mapped[datetime]:
    return mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False
    )


class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the identity provider's user.
    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True)
    full_name: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    title: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    github_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    twitter_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    is_admin: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, server_default=sa.false())
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    social_links: Mapped[list["SocialLink"]] = relationship(
        back_populates="profile", cascade="all, delete-orphan", passive_deletes=True, order_by="SocialLink.position"
    )


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    content: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    status: Mapped[ContentStatus] = mapped_column(sa.String(16), nullable=False, server_default=ContentStatus.draft.value)
    featured: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, server_default=sa.false())
    technologies: Mapped[list[str]] = mapped_column(sa.JSON(), nullable=False, default=list)
    github_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    live_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    image_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    view_count: Mapped[int] = mapped_column(sa.BigInteger(), nullable=False, server_default="0")
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    media: Mapped[list["ProjectMedia"]] = relationship(
        back_populates="project", cascade="all, delete-orphan", passive_deletes=True, order_by="ProjectMedia.position"
    )


class ProjectMedia(Base):
    __tablename__ = "project_media"
    # No unique (project_id, position): positions overlap while a reconciliation is in flight.
    __table_args__ = (sa.Index("ix_project_media_project_position", "project_id", "position"),)

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[MediaType] = mapped_column(sa.String(16), nullable=False)
    url: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    position: Mapped[int] = mapped_column(sa.Integer(), nullable=False, server_default="0")
    created_at: Mapped[datetime] = _created_at()

    project: Mapped[Project] = relationship(back_populates="media")


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    slug: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    excerpt: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    content: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    cover_image_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    status: Mapped[ContentStatus] = mapped_column(sa.String(16), nullable=False, server_default=ContentStatus.draft.value)
    featured: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, server_default=sa.false())
    tags: Mapped[list[str]] = mapped_column(sa.JSON(), nullable=False, default=list)
    view_count: Mapped[int] = mapped_column(sa.BigInteger(), nullable=False, server_default="0")
    published_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True, index=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class GalleryItem(Base):
    __tablename__ = "gallery_items"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    image_url: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    category: Mapped[str | None] = mapped_column(sa.String(128), nullable=True)
    tags: Mapped[list[str]] = mapped_column(sa.JSON(), nullable=False, default=list)
    position: Mapped[int] = mapped_column(sa.Integer(), nullable=False, server_default="0")
    featured: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, server_default=sa.false())
    status: Mapped[ContentStatus] = mapped_column(sa.String(16), nullable=False, server_default=ContentStatus.draft.value)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    # Recipient; the sender may be anonymous.
    user_id: Mapped[uuid.UUID] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    subject: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    message: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    status: Mapped[MessageStatus] = mapped_column(sa.String(16), nullable=False, server_default=MessageStatus.unread.value)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class SocialLink(Base):
    __tablename__ = "social_links"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid(), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    platform: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    label: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    url: Mapped[str] = mapped_column(sa.Text(), nullable=False)
    position: Mapped[int] = mapped_column(sa.Integer(), nullable=False, server_default="0")
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    profile: Mapped[Profile] = relationship(back_populates="social_links")


class SiteSettings(Base):
    __tablename__ = "site_settings"
    __table_args__ = (sa.CheckConstraint("id", name="ck_site_settings_singleton"),)

    id: Mapped[bool] = mapped_column(sa.Boolean(), primary_key=True, default=SITE_SETTINGS_KEY)
    show_view_counts: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, server_default=sa.true())
    show_featured_first: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, server_default=sa.true())
    enable_blog: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, server_default=sa.false())
    enable_gallery: Mapped[bool] = mapped_column(sa.Boolean(), nullable=False, server_default=sa.false())
    meta_title: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    resume_url: Mapped[str | None] = mapped_column(sa.Text(), nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()
