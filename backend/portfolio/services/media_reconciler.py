"""
Project media reconciliation.

Makes the stored media of one project match a submitted ordered list:

  1. reject duplicate ids and ids that are not this project's media
  2. position := index in the submitted list, for every item
  3. batch update of items that carry an id
  4. batch insert of items without one (the store assigns ids)
  5. batch delete of stored ids absent from the submission

Batches run in the order update -> insert -> delete and each commits on its
own. A failing batch raises ReconciliationError; batches that already
committed stay applied. Resubmitting the same list converges, so callers
recover by retrying with the full desired list.
"""
from __future__ import annotations

import logging
import uuid
from typing import Sequence

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.errors import MediaValidationError, ReconciliationError
from portfolio.models import ProjectMedia
from portfolio.schemas import MediaItemIn
from portfolio.services import revalidate

logger = logging.getLogger(__name__)

PROJECTS_ADMIN_PATH = "/dashboard/projects"


async def list_media(session: AsyncSession, project_id: uuid.UUID) -> list[ProjectMedia]:
    res = await session.execute(
        select(ProjectMedia)
        .where(ProjectMedia.project_id == project_id)
        .order_by(ProjectMedia.position)
        .execution_options(populate_existing=True)
    )
    return list(res.scalars().all())


def _check_submission(
    project_id: uuid.UUID | None, submitted: Sequence[MediaItemIn], persisted: set[uuid.UUID]
) -> None:
    seen: set[uuid.UUID] = set()
    for item in submitted:
        if item.id is None:
            continue
        if item.id in seen:
            raise MediaValidationError(f"Duplicate media id {item.id} in submitted list")
        seen.add(item.id)
    foreign = [str(i) for i in seen if i not in persisted]
    if foreign:
        owner = f"project {project_id}" if project_id is not None else "a new project"
        raise MediaValidationError(f"Media ids do not belong to {owner}: {', '.join(sorted(foreign))}")


async def check_submission(
    session: AsyncSession, project_id: uuid.UUID | None, submitted: Sequence[MediaItemIn]
) -> set[uuid.UUID]:
    """Validate a media list without writing. Returns the ids currently stored for the project.

    A project_id of None stands for a project that is not stored yet, so any
    submitted id is foreign.
    """
    persisted: set[uuid.UUID] = set()
    if project_id is not None:
        res = await session.execute(select(ProjectMedia.id).where(ProjectMedia.project_id == project_id))
        persisted = set(res.scalars().all())
    _check_submission(project_id, submitted, persisted)
    return persisted


async def _run_batch(session: AsyncSession, project_id: uuid.UUID, phase: str, stmt, params=None) -> None:
    try:
        if params is None:
            await session.execute(stmt)
        else:
            await session.execute(stmt, params)
        await session.commit()
    except Exception as exc:
        await session.rollback()
        logger.error(f"[reconcile] project {project_id}: {phase} batch failed: {exc}")
        raise ReconciliationError(project_id, phase, exc) from exc


async def reconcile(
    session: AsyncSession, project_id: uuid.UUID, submitted: Sequence[MediaItemIn]
) -> list[ProjectMedia]:
    """Apply the submitted media list to a project and return the stored result in order."""
    persisted = await check_submission(session, project_id, submitted)

    updates: list[dict] = []
    inserts: list[dict] = []
    for position, item in enumerate(submitted):
        row = {"type": item.type.value, "url": item.url, "position": position}
        if item.id is not None:
            updates.append({"id": item.id, **row})
        else:
            inserts.append({"project_id": project_id, **row})

    kept = {row["id"] for row in updates}
    to_delete = persisted - kept

    if updates:
        await _run_batch(session, project_id, "update", update(ProjectMedia), updates)
    if inserts:
        await _run_batch(session, project_id, "insert", insert(ProjectMedia), inserts)
    if to_delete:
        await _run_batch(
            session,
            project_id,
            "delete",
            delete(ProjectMedia)
            .where(ProjectMedia.project_id == project_id, ProjectMedia.id.in_(to_delete))
            .execution_options(synchronize_session=False),
        )

    logger.info(
        f"[reconcile] project {project_id}: {len(updates)} updated, {len(inserts)} inserted, {len(to_delete)} deleted"
    )
    revalidate.invalidate(PROJECTS_ADMIN_PATH)
    return await list_media(session, project_id)
