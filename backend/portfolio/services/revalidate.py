"""
Revalidation signal: tells the front-end to drop cached renders of a path.

Env:
  REVALIDATE_URL, REVALIDATE_SECRET

invalidate() is fire-and-forget: the POST runs as its own task, is never
awaited by the caller and is not retried. Failures are logged.
"""
from __future__ import annotations

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

_pending: set[asyncio.Task] = set()


def _get_config() -> tuple[str | None, str | None, float]:
    from portfolio.settings import get_settings
    s = get_settings()
    return s.revalidate_url, s.revalidate_secret, s.revalidate_timeout_sec


async def _post(path: str) -> bool:
    url, secret, timeout = _get_config()
    if not url:
        logger.debug(f"[revalidate] not configured, skipping {path}")
        return False
    headers = {"x-revalidate-secret": secret} if secret else {}
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            r = await client.post(url, json={"path": path}, headers=headers)
            if r.status_code < 300:
                return True
            logger.warning(f"[revalidate] {path}: HTTP {r.status_code}: {r.text[:200]}")
    except Exception as e:
        logger.warning(f"[revalidate] {path} failed: {e}")
    return False


def invalidate(*paths: str) -> None:
    """Schedule a revalidation POST for each path without waiting for it."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug(f"[revalidate] no running loop, dropping {paths}")
        return
    for path in paths:
        task = loop.create_task(_post(path))
        _pending.add(task)
        task.add_done_callback(_pending.discard)
