"""
Singleton site settings writer.

Two write paths, tried in order:
  1. update_site_settings(patch) procedure
  2. direct UPDATE site_settings ... WHERE id = true RETURNING *

Neither path inserts. A missing row fails both paths and surfaces as
SettingsWriteError; only the failure of both paths is reported.
"""
from __future__ import annotations

import logging

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.errors import SettingsWriteError, SiteSettingsMissing
from portfolio.models import SITE_SETTINGS_KEY, SiteSettings
from portfolio.schemas import SiteSettingsPatch, SiteSettingsRead
from portfolio.services import revalidate, rpc

logger = logging.getLogger(__name__)

SETTINGS_PATHS = ("/", "/dashboard/settings")


async def get_settings_row(session: AsyncSession) -> SiteSettings:
    row = await session.get(SiteSettings, SITE_SETTINGS_KEY, populate_existing=True)
    if row is None:
        raise SiteSettingsMissing("Site settings row is missing")
    return row


async def _direct_update(session: AsyncSession, changes: dict) -> SiteSettings:
    stmt = (
        update(SiteSettings)
        .where(SiteSettings.id == SITE_SETTINGS_KEY)
        .values(**changes, updated_at=func.now())
        .returning(SiteSettings)
        .execution_options(synchronize_session=False, populate_existing=True)
    )
    row = (await session.execute(stmt)).scalar_one_or_none()
    if row is None:
        raise SiteSettingsMissing("Site settings row is missing")
    await session.commit()
    return row


async def apply_settings(session: AsyncSession, patch: SiteSettingsPatch) -> SiteSettingsRead:
    """Overwrite the patched fields of the settings row and return the stored row."""
    changes = patch.changes()
    try:
        row = await rpc.update_site_settings(session, changes)
        await session.commit()
        result = SiteSettingsRead.model_validate(row)
        logger.info(f"[settings] updated via procedure: {sorted(changes)}")
    except Exception as rpc_exc:
        await session.rollback()
        logger.warning(f"[settings] update_site_settings failed, falling back to direct update: {rpc_exc}")
        try:
            row = await _direct_update(session, changes)
        except Exception as exc:
            await session.rollback()
            logger.error(f"[settings] direct update failed: {exc}")
            raise SettingsWriteError(
                f"Could not update site settings (procedure: {rpc_exc}; direct update: {exc})"
            ) from exc
        result = SiteSettingsRead.model_validate(row)
        logger.info(f"[settings] updated via direct update: {sorted(changes)}")

    revalidate.invalidate(*SETTINGS_PATHS)
    return result
