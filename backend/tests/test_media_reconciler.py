"""Tests for project media reconciliation."""

from __future__ import annotations

import uuid

import pytest
import sqlalchemy as sa
from sqlalchemy import func, select

from portfolio.errors import MediaValidationError, ReconciliationError
from portfolio.models import Project, ProjectMedia
from portfolio.schemas import MediaItemIn
from portfolio.services.media_reconciler import check_submission, list_media, reconcile


def image(url: str, id: uuid.UUID | None = None) -> MediaItemIn:
    return MediaItemIn(id=id, type="image", url=url)


async def _count(session) -> int:
    return await session.scalar(select(func.count(ProjectMedia.id)))


@pytest.mark.asyncio
async def test_new_items_get_dense_positions(session, project) -> None:
    stored = await reconcile(session, project.id, [image("a.png"), image("b.png")])

    assert [m.url for m in stored] == ["a.png", "b.png"]
    assert [m.position for m in stored] == [0, 1]
    assert all(m.id is not None for m in stored)


@pytest.mark.asyncio
async def test_resubmitting_swapped_ids_swaps_positions(session, project) -> None:
    row_a, row_b = await reconcile(session, project.id, [image("a.png"), image("b.png")])
    ids_before = {row_a.id, row_b.id}

    stored = await reconcile(session, project.id, [image("b.png", row_b.id), image("a.png", row_a.id)])

    assert [(m.id, m.position) for m in stored] == [(row_b.id, 0), (row_a.id, 1)]
    assert {m.id for m in stored} == ids_before
    assert await _count(session) == 2


@pytest.mark.asyncio
async def test_mixed_update_insert_delete(session, project) -> None:
    a, b, c = await reconcile(session, project.id, [image("a.png"), image("b.png"), image("c.png")])

    stored = await reconcile(
        session,
        project.id,
        [MediaItemIn(type="video", url="intro.mp4"), image("c2.png", c.id), image("a.png", a.id)],
    )

    assert [m.url for m in stored] == ["intro.mp4", "c2.png", "a.png"]
    assert [m.position for m in stored] == [0, 1, 2]
    assert stored[0].type == "video"
    assert stored[1].id == c.id
    assert b.id not in {m.id for m in stored}


@pytest.mark.asyncio
async def test_reconcile_is_idempotent(session, project) -> None:
    def snapshot(rows):
        return [(m.id, m.url, m.type, m.position) for m in rows]

    first = snapshot(await reconcile(session, project.id, [image("a.png"), image("b.png")]))
    submitted = [image(url, id) for id, url, _, _ in first]

    once = snapshot(await reconcile(session, project.id, submitted))
    twice = snapshot(await reconcile(session, project.id, submitted))

    assert once == twice == first
    assert await _count(session) == 2


@pytest.mark.asyncio
async def test_empty_submission_deletes_everything(session, project) -> None:
    await reconcile(session, project.id, [image("a.png"), image("b.png")])

    stored = await reconcile(session, project.id, [])

    assert stored == []
    assert await _count(session) == 0


@pytest.mark.asyncio
async def test_duplicate_ids_rejected_without_writes(session, project) -> None:
    (a,) = await reconcile(session, project.id, [image("a.png")])

    with pytest.raises(MediaValidationError, match="Duplicate"):
        await reconcile(session, project.id, [image("x.png", a.id), image("y.png", a.id), image("new.png")])

    stored = await list_media(session, project.id)
    assert [(m.id, m.url) for m in stored] == [(a.id, "a.png")]


@pytest.mark.asyncio
async def test_foreign_media_id_rejected_without_writes(session, project, admin_profile) -> None:
    other = Project(user_id=admin_profile.id, title="Other project")
    session.add(other)
    await session.commit()
    await session.refresh(other)
    (foreign,) = await reconcile(session, other.id, [image("other.png")])
    (own,) = await reconcile(session, project.id, [image("own.png")])

    with pytest.raises(MediaValidationError, match="do not belong"):
        await reconcile(session, project.id, [image("stolen.png", foreign.id)])

    assert [(m.id, m.url) for m in await list_media(session, other.id)] == [(foreign.id, "other.png")]
    assert [(m.id, m.url) for m in await list_media(session, project.id)] == [(own.id, "own.png")]


@pytest.mark.asyncio
async def test_unknown_id_rejected(session, project) -> None:
    with pytest.raises(MediaValidationError):
        await reconcile(session, project.id, [image("ghost.png", uuid.uuid4())])
    assert await _count(session) == 0


@pytest.mark.asyncio
async def test_failed_insert_batch_leaves_updates_applied(session, project, monkeypatch) -> None:
    a, b = await reconcile(session, project.id, [image("a.png"), image("b.png")])
    desired = [image("b.png", b.id), image("new.png")]

    real_execute = session.execute

    async def failing_insert(statement, *args, **kwargs):
        if isinstance(statement, sa.Insert):
            raise sa.exc.OperationalError("INSERT INTO project_media", {}, Exception("disk I/O error"))
        return await real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(session, "execute", failing_insert)
    with pytest.raises(ReconciliationError) as excinfo:
        await reconcile(session, project.id, desired)
    assert excinfo.value.phase == "insert"
    monkeypatch.setattr(session, "execute", real_execute)

    # update batch committed, delete batch never ran
    partial = await list_media(session, project.id)
    assert {(m.id, m.position) for m in partial} == {(a.id, 0), (b.id, 0)}

    # resubmitting the same desired state repairs it
    stored = await reconcile(session, project.id, desired)
    assert [m.url for m in stored] == ["b.png", "new.png"]
    assert [m.position for m in stored] == [0, 1]
    assert a.id not in {m.id for m in stored}


@pytest.mark.asyncio
async def test_project_delete_cascades_to_media(session, project) -> None:
    await reconcile(session, project.id, [image("a.png")])
    await session.delete(project)
    await session.commit()
    assert await _count(session) == 0


@pytest.mark.asyncio
async def test_check_submission_for_unsaved_project_rejects_any_id(session) -> None:
    assert await check_submission(session, None, [image("a.png"), image("b.png")]) == set()
    with pytest.raises(MediaValidationError, match="a new project"):
        await check_submission(session, None, [image("a.png", uuid.uuid4())])


@pytest.mark.asyncio
async def test_check_submission_does_not_write(session, project) -> None:
    (a,) = await reconcile(session, project.id, [image("a.png")])

    assert await check_submission(session, project.id, [image("b.png"), image("a2.png", a.id)]) == {a.id}
    assert [(m.id, m.url) for m in await list_media(session, project.id)] == [(a.id, "a.png")]
