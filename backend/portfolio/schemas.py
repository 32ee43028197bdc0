from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .models import ContentStatus, MediaType, MessageStatus

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


class PatchModel(BaseModel):
    """Partial update body: unset fields are left alone, unknown fields are rejected."""

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    class Config:
        extra = "forbid"

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in self.model_fields_set & self.non_nullable:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, mode="json")


def _clean_list(values: list[str]) -> list[str]:
    return [v.strip() for v in values if v and v.strip()]


# Project media
class MediaItemIn(BaseModel):
    id: uuid.UUID | None = None
    type: MediaType
    url: str = Field(min_length=1)

    class Config:
        extra = "forbid"


class MediaItemRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    type: MediaType
    url: str
    position: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class MediaListIn(BaseModel):
    items: list[MediaItemIn]


# Projects
class ProjectCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    content: str | None = None
    status: ContentStatus = ContentStatus.draft
    featured: bool = False
    technologies: list[str] = Field(default_factory=list)
    github_url: str | None = None
    live_url: str | None = None
    image_url: str | None = None
    media: list[MediaItemIn] | None = None

    class Config:
        extra = "forbid"

    @field_validator("technologies")
    @classmethod
    def normalize_technologies(cls, value: list[str]) -> list[str]:
        return _clean_list(value)


class ProjectUpdate(PatchModel):
    non_nullable = frozenset({"title", "status", "featured", "technologies"})

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    content: str | None = None
    status: ContentStatus | None = None
    featured: bool | None = None
    technologies: list[str] | None = None
    github_url: str | None = None
    live_url: str | None = None
    image_url: str | None = None
    media: list[MediaItemIn] | None = None

    @field_validator("technologies")
    @classmethod
    def normalize_technologies(cls, value: list[str] | None) -> list[str] | None:
        return _clean_list(value) if value is not None else None

    def changes(self) -> dict:
        data = super().changes()
        data.pop("media", None)
        return data


class ProjectRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str | None = None
    content: str | None = None
    status: ContentStatus
    featured: bool
    technologies: list[str] = []
    github_url: str | None = None
    live_url: str | None = None
    image_url: str | None = None
    view_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class ProjectDetail(ProjectRead):
    media: list[MediaItemRead] = []


# Blog
class BlogPostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    excerpt: str | None = None
    content: str
    cover_image_url: str | None = None
    status: ContentStatus = ContentStatus.draft
    featured: bool = False
    tags: list[str] = Field(default_factory=list)

    class Config:
        extra = "forbid"

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value: list[str]) -> list[str]:
        return _clean_list(value)

    @model_validator(mode="after")
    def fill_slug(self):
        self.slug = self.slug or slugify(self.title)
        if not SLUG_RE.match(self.slug):
            raise ValueError(f"invalid slug: {self.slug!r}")
        return self


class BlogPostUpdate(PatchModel):
    non_nullable = frozenset({"title", "slug", "content", "status", "featured", "tags"})

    title: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    excerpt: str | None = None
    content: str | None = None
    cover_image_url: str | None = None
    status: ContentStatus | None = None
    featured: bool | None = None
    tags: list[str] | None = None

    @field_validator("slug")
    @classmethod
    def check_slug(cls, value: str | None) -> str | None:
        if value is not None and not SLUG_RE.match(value):
            raise ValueError(f"invalid slug: {value!r}")
        return value

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, value: list[str] | None) -> list[str] | None:
        return _clean_list(value) if value is not None else None


class BlogPostRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    slug: str
    excerpt: str | None = None
    content: str
    cover_image_url: str | None = None
    status: ContentStatus
    featured: bool
    tags: list[str] = []
    view_count: int
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# Gallery
class GalleryItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    image_url: str = Field(min_length=1)
    thumbnail_url: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    position: int = Field(default=0, ge=0)
    featured: bool = False
    status: ContentStatus = ContentStatus.draft

    class Config:
        extra = "forbid"


class GalleryItemUpdate(PatchModel):
    non_nullable = frozenset({"title", "image_url", "tags", "position", "featured", "status"})

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    image_url: str | None = None
    thumbnail_url: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    position: int | None = Field(default=None, ge=0)
    featured: bool | None = None
    status: ContentStatus | None = None


class GalleryItemRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str | None = None
    image_url: str
    thumbnail_url: str | None = None
    category: str | None = None
    tags: list[str] = []
    position: int
    featured: bool
    status: ContentStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# Messages
class MessageCreate(BaseModel):
    recipient_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    subject: str | None = Field(default=None, max_length=255)
    message: str = Field(min_length=1)

    class Config:
        extra = "forbid"


class MessageStatusUpdate(BaseModel):
    status: MessageStatus


class MessageRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    email: str
    subject: str | None = None
    message: str
    status: MessageStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# Site settings
class SiteSettingsPatch(PatchModel):
    non_nullable = frozenset({"show_view_counts", "show_featured_first", "enable_blog", "enable_gallery"})

    show_view_counts: bool | None = None
    show_featured_first: bool | None = None
    enable_blog: bool | None = None
    enable_gallery: bool | None = None
    meta_title: str | None = Field(default=None, max_length=255)
    meta_description: str | None = None
    resume_url: str | None = None


class SiteSettingsRead(BaseModel):
    show_view_counts: bool
    show_featured_first: bool
    enable_blog: bool
    enable_gallery: bool
    meta_title: str | None = None
    meta_description: str | None = None
    resume_url: str | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


# Profile / social links
class ProfileUpdate(PatchModel):
    full_name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = None
    title: str | None = Field(default=None, max_length=255)
    bio: str | None = None
    github_url: str | None = None
    linkedin_url: str | None = None
    twitter_url: str | None = None


class SocialLinkCreate(BaseModel):
    platform: str = Field(min_length=1, max_length=64)
    label: str | None = Field(default=None, max_length=255)
    url: str = Field(min_length=1)
    position: int | None = Field(default=None, ge=0)

    class Config:
        extra = "forbid"


class SocialLinkUpdate(PatchModel):
    non_nullable = frozenset({"platform", "url", "position"})

    platform: str | None = Field(default=None, min_length=1, max_length=64)
    label: str | None = Field(default=None, max_length=255)
    url: str | None = Field(default=None, min_length=1)
    position: int | None = Field(default=None, ge=0)


class SocialLinkRead(BaseModel):
    id: uuid.UUID
    platform: str
    label: str | None = None
    url: str
    position: int

    class Config:
        from_attributes = True


class ProfileRead(BaseModel):
    id: uuid.UUID
    full_name: str | None = None
    avatar_url: str | None = None
    title: str | None = None
    bio: str | None = None
    github_url: str | None = None
    linkedin_url: str | None = None
    twitter_url: str | None = None
    is_admin: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class PublicProfileRead(ProfileRead):
    social_links: list[SocialLinkRead] = []


# Auth
class PrincipalRead(BaseModel):
    state: str
    user_id: uuid.UUID | None = None
    is_admin: bool
