from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .routes_auth import require_admin
from .schemas import SiteSettingsPatch, SiteSettingsRead
from .services.settings_writer import apply_settings, get_settings_row

router = APIRouter(prefix="/api", tags=["settings"])
admin_router = APIRouter(prefix="/api/admin", tags=["settings"], dependencies=[Depends(require_admin)])

SessionDep = Depends(get_session)


@router.get("/settings", response_model=SiteSettingsRead)
async def read_site_settings(session: AsyncSession = SessionDep):
    return await get_settings_row(session)


@admin_router.patch("/settings", response_model=SiteSettingsRead)
async def patch_site_settings(data: SiteSettingsPatch, session: AsyncSession = SessionDep):
    """Overwrite the given fields of the site-wide settings row."""
    return await apply_settings(session, data)
