from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .models import ContentStatus, Project, ProjectMedia
from .routes_auth import Principal, require_admin
from .schemas import MediaItemRead, MediaListIn, ProjectCreate, ProjectDetail, ProjectRead, ProjectUpdate
from .services import media_reconciler, revalidate
from .services.counters import CounterKind, bump
from .services.settings_writer import get_settings_row

router = APIRouter(prefix="/api", tags=["projects"])
admin_router = APIRouter(prefix="/api/admin", tags=["projects"], dependencies=[Depends(require_admin)])

SessionDep = Depends(get_session)
AdminDep = Depends(require_admin)
PROJECT_PATHS = ("/", "/dashboard/projects")


def _detail(project: Project, media: list[ProjectMedia]) -> ProjectDetail:
    data = ProjectRead.model_validate(project).model_dump()
    return ProjectDetail(**data, media=[MediaItemRead.model_validate(m) for m in media])


async def _get_project_or_404(session: AsyncSession, project_id: uuid.UUID) -> Project:
    project = await session.get(Project, project_id, populate_existing=True)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


# Public


@router.get("/projects", response_model=List[ProjectRead])
async def list_published_projects(
    featured_first: Optional[bool] = Query(default=None),
    session: AsyncSession = SessionDep,
):
    if featured_first is None:
        featured_first = (await get_settings_row(session)).show_featured_first
    stmt = select(Project).where(Project.status == ContentStatus.published.value)
    if featured_first:
        stmt = stmt.order_by(Project.featured.desc(), Project.created_at.desc())
    else:
        stmt = stmt.order_by(Project.created_at.desc())
    res = await session.execute(stmt)
    return res.scalars().all()


@router.get("/projects/{project_id}", response_model=ProjectDetail)
async def get_published_project(project_id: uuid.UUID, session: AsyncSession = SessionDep):
    project = await _get_project_or_404(session, project_id)
    if project.status != ContentStatus.published.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return _detail(project, await media_reconciler.list_media(session, project_id))


@router.post("/projects/{project_id}/view", status_code=status.HTTP_204_NO_CONTENT)
async def record_project_view(project_id: uuid.UUID, session: AsyncSession = SessionDep):
    project = await _get_project_or_404(session, project_id)
    if project.status != ContentStatus.published.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    await bump(session, CounterKind.project, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Admin


@admin_router.get("/projects", response_model=List[ProjectRead])
async def list_projects(principal: Principal = AdminDep, session: AsyncSession = SessionDep):
    res = await session.execute(
        select(Project).where(Project.user_id == principal.user_id).order_by(Project.created_at.desc())
    )
    return res.scalars().all()


@admin_router.post("/projects", response_model=ProjectDetail, status_code=status.HTTP_201_CREATED)
async def create_project(data: ProjectCreate, principal: Principal = AdminDep, session: AsyncSession = SessionDep):
    if data.media is not None:
        await media_reconciler.check_submission(session, None, data.media)
    project = Project(
        user_id=principal.user_id,
        title=data.title,
        description=data.description,
        content=data.content,
        status=data.status.value,
        featured=data.featured,
        technologies=data.technologies,
        github_url=data.github_url,
        live_url=data.live_url,
        image_url=data.image_url,
    )
    session.add(project)
    await session.commit()
    await session.refresh(project)

    if data.media is not None:
        media = await media_reconciler.reconcile(session, project.id, data.media)
    else:
        media = []
    revalidate.invalidate(*PROJECT_PATHS)
    return _detail(project, media)


@admin_router.get("/projects/{project_id}", response_model=ProjectDetail)
async def get_project(project_id: uuid.UUID, session: AsyncSession = SessionDep):
    project = await _get_project_or_404(session, project_id)
    return _detail(project, await media_reconciler.list_media(session, project_id))


@admin_router.patch("/projects/{project_id}", response_model=ProjectDetail)
async def update_project(project_id: uuid.UUID, data: ProjectUpdate, session: AsyncSession = SessionDep):
    project = await _get_project_or_404(session, project_id)
    if data.media is not None:
        await media_reconciler.check_submission(session, project_id, data.media)
    for field, value in data.changes().items():
        setattr(project, field, value)
    session.add(project)
    await session.commit()
    await session.refresh(project)

    if data.media is not None:
        media = await media_reconciler.reconcile(session, project_id, data.media)
    else:
        media = await media_reconciler.list_media(session, project_id)
    revalidate.invalidate(*PROJECT_PATHS)
    return _detail(project, media)


@admin_router.delete("/projects/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: uuid.UUID, session: AsyncSession = SessionDep):
    project = await _get_project_or_404(session, project_id)
    await session.delete(project)
    await session.commit()
    revalidate.invalidate(*PROJECT_PATHS)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@admin_router.get("/projects/{project_id}/media", response_model=List[MediaItemRead])
async def get_project_media(project_id: uuid.UUID, session: AsyncSession = SessionDep):
    await _get_project_or_404(session, project_id)
    return await media_reconciler.list_media(session, project_id)


@admin_router.put("/projects/{project_id}/media", response_model=List[MediaItemRead])
async def replace_project_media(project_id: uuid.UUID, data: MediaListIn, session: AsyncSession = SessionDep):
    """Make the project's media match the submitted list, in the submitted order."""
    await _get_project_or_404(session, project_id)
    return await media_reconciler.reconcile(session, project_id, data.items)
