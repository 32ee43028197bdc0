"""Tests for the singleton site settings writer."""

from __future__ import annotations

import pytest
from pydantic import ValidationError
from sqlalchemy import delete, func, select

from portfolio.errors import SettingsWriteError, SiteSettingsMissing
from portfolio.models import SiteSettings
from portfolio.schemas import SiteSettingsPatch
from portfolio.services.settings_writer import apply_settings, get_settings_row


async def _row_count(session) -> int:
    return await session.scalar(select(func.count()).select_from(SiteSettings))


@pytest.mark.asyncio
async def test_procedure_path_is_preferred(session, site_settings, procedures) -> None:
    result = await apply_settings(session, SiteSettingsPatch(enable_blog=True, meta_title="Jane Doe"))

    assert procedures.names() == ["update_site_settings"]
    assert result.enable_blog is True
    assert result.meta_title == "Jane Doe"
    assert result.show_view_counts is True
    assert await _row_count(session) == 1


@pytest.mark.asyncio
async def test_falls_back_to_direct_update(session, site_settings, procedures) -> None:
    procedures.failing.add("update_site_settings")

    result = await apply_settings(session, SiteSettingsPatch(enable_gallery=True, resume_url="/cv.pdf"))

    assert result.enable_gallery is True
    assert result.resume_url == "/cv.pdf"
    row = await get_settings_row(session)
    assert row.enable_gallery is True
    assert row.resume_url == "/cv.pdf"
    assert await _row_count(session) == 1


@pytest.mark.asyncio
async def test_patch_only_touches_given_fields(session, site_settings, procedures) -> None:
    await apply_settings(session, SiteSettingsPatch(meta_title="Portfolio", meta_description="Work"))
    result = await apply_settings(session, SiteSettingsPatch(meta_description=None))

    assert result.meta_title == "Portfolio"
    assert result.meta_description is None


@pytest.mark.asyncio
async def test_repeated_patch_is_idempotent(session, site_settings, procedures) -> None:
    patch = SiteSettingsPatch(show_featured_first=False, meta_title="Same")
    first = await apply_settings(session, patch)
    second = await apply_settings(session, patch)

    assert first.model_dump(exclude={"updated_at"}) == second.model_dump(exclude={"updated_at"})
    assert await _row_count(session) == 1


@pytest.mark.asyncio
async def test_many_writes_keep_a_single_row(session, site_settings, procedures) -> None:
    for i in range(5):
        if i % 2:
            procedures.failing.add("update_site_settings")
        else:
            procedures.failing.discard("update_site_settings")
        await apply_settings(session, SiteSettingsPatch(meta_title=f"title {i}"))

    assert await _row_count(session) == 1
    assert (await get_settings_row(session)).meta_title == "title 4"


@pytest.mark.asyncio
async def test_missing_row_fails_both_paths_without_insert(session, procedures) -> None:
    with pytest.raises(SettingsWriteError):
        await apply_settings(session, SiteSettingsPatch(enable_blog=True))

    assert await _row_count(session) == 0


@pytest.mark.asyncio
async def test_missing_row_with_procedure_down(session, procedures) -> None:
    procedures.failing.add("update_site_settings")
    with pytest.raises(SettingsWriteError, match="procedure"):
        await apply_settings(session, SiteSettingsPatch(enable_blog=True))
    assert await _row_count(session) == 0


@pytest.mark.asyncio
async def test_read_of_missing_row_is_an_error(session, site_settings) -> None:
    await session.execute(delete(SiteSettings))
    await session.commit()
    with pytest.raises(SiteSettingsMissing):
        await get_settings_row(session)


def test_malformed_patches_are_rejected() -> None:
    with pytest.raises(ValidationError):
        SiteSettingsPatch(enable_blog="definitely")
    with pytest.raises(ValidationError):
        SiteSettingsPatch(theme="dark")
    with pytest.raises(ValidationError):
        SiteSettingsPatch(enable_blog=None)


def test_patch_changes_only_include_set_fields() -> None:
    assert SiteSettingsPatch(meta_title=None).changes() == {"meta_title": None}
    assert SiteSettingsPatch().changes() == {}
