"""Shared test fixtures."""

from __future__ import annotations

import json
import os
import uuid

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("REVALIDATE_URL", "")

import jwt
import pytest
import pytest_asyncio
import sqlalchemy as sa
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from portfolio.db import Base, get_session
from portfolio.models import BlogPost, Profile, Project, SiteSettings
from portfolio.services import rpc
from portfolio.settings import get_settings

ADMIN_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")


class FakeProcedures:
    """Stands in for the PostgreSQL functions behind rpc.call_rpc, using plain SQL on SQLite."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.failing: set[str] = set()

    async def __call__(self, session, name: str, **params) -> list[dict]:
        self.calls.append((name, params))
        if name not in rpc.PROCEDURES:
            raise rpc.UnknownProcedure(name)
        if name in self.failing:
            raise RuntimeError(f"function {name} does not exist")

        if name == "is_admin":
            admin = await session.scalar(sa.select(Profile.is_admin).where(Profile.id == params["user_id"]))
            return [{"is_admin": bool(admin)}]
        if name == "make_admin":
            await session.execute(
                sa.update(Profile.__table__).where(Profile.__table__.c.id == params["target_user_id"]).values(is_admin=True)
            )
            return [{"make_admin": None}]
        if name == "increment_view_count":
            table = Project.__table__
            await session.execute(
                sa.update(table).where(table.c.id == params["project_id"]).values(view_count=table.c.view_count + 1)
            )
            return [{"increment_view_count": None}]
        if name == "increment_blog_view_count":
            table = BlogPost.__table__
            await session.execute(
                sa.update(table).where(table.c.id == params["post_id"]).values(view_count=table.c.view_count + 1)
            )
            return [{"increment_blog_view_count": None}]
        if name == "update_site_settings":
            table = SiteSettings.__table__
            res = await session.execute(
                sa.update(table)
                .where(table.c.id == True)  # noqa: E712
                .values(**json.loads(params["patch"]), updated_at=sa.func.now())
                .returning(*table.c)
            )
            rows = [dict(row) for row in res.mappings().all()]
            if not rows:
                raise RuntimeError("site_settings row missing")
            return rows
        raise AssertionError(f"unhandled procedure {name}")

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'portfolio.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def procedures(monkeypatch) -> FakeProcedures:
    fake = FakeProcedures()
    monkeypatch.setattr(rpc, "call_rpc", fake)
    return fake


@pytest_asyncio.fixture
async def site_settings(session) -> SiteSettings:
    row = SiteSettings(id=True)
    session.add(row)
    await session.commit()
    await session.refresh(row)
    return row


@pytest_asyncio.fixture
async def admin_profile(session) -> Profile:
    profile = Profile(id=ADMIN_ID, full_name="Site Owner", is_admin=True)
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


@pytest_asyncio.fixture
async def user_profile(session) -> Profile:
    profile = Profile(id=USER_ID, full_name="Visitor")
    session.add(profile)
    await session.commit()
    await session.refresh(profile)
    return profile


@pytest_asyncio.fixture
async def project(session, admin_profile) -> Project:
    project = Project(user_id=admin_profile.id, title="Portfolio site", status="published")
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project


def make_token(user_id: uuid.UUID | str | None, **claims) -> str:
    settings = get_settings()
    payload = {"aud": settings.jwt_audience, **claims}
    if user_id is not None:
        payload["sub"] = str(user_id)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: uuid.UUID | str | None, **claims) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, **claims)}"}


@pytest_asyncio.fixture
async def client(session_factory, procedures):
    """ASGI client against the real app, wired to the test database and fake procedures."""
    from portfolio.main import app

    async def _override_session():
        async with session_factory() as session:
            yield session

    async def _oracle(user_id: uuid.UUID) -> bool:
        async with session_factory() as session:
            return await rpc.is_admin(session, user_id)

    app.dependency_overrides[get_session] = _override_session
    app.state.admin_oracle = _oracle
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    del app.state.admin_oracle
