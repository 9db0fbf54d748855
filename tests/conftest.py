"""Pytest configuration: in-memory database, sessions and an ASGI client."""
import os

# Settings are read at import time; point them at throwaway values first.
os.environ.setdefault("TAGRADIO_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TAGRADIO_LOG_FORMAT", "console")
os.environ.setdefault("TAGRADIO_CREATE_TABLES_ON_STARTUP", "false")

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from tagradio.core.database import build_engine, build_session_factory, get_db, init_models
from tagradio.main import app
from tagradio.services import RadioStationService, TagService, TrackService


@pytest.fixture
async def engine():
    """A fresh in-memory database per test."""
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    await init_models(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """ASGI client whose requests use the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def library(db):
    """
    A small tagged library.

    rock_fast: {Rock, Fast}   pop: {Pop}   jazz: {Jazz}
    rock_live: {Rock, Live}   untagged: {}   retired: {Rock} (inactive)
    """
    tag_service = TagService(db)
    tags = SimpleNamespace()
    for name, category in [("Rock", "genre"), ("Pop", "genre"), ("Jazz", "genre"), ("Live", "mood"), ("Fast", "mood")]:
        tag = await tag_service.create_tag(name, category)
        setattr(tags, name.lower(), tag.id)

    track_service = TrackService(db)
    tracks = SimpleNamespace()
    for key, tag_ids, active in [
        ("rock_fast", [tags.rock, tags.fast], True),
        ("pop", [tags.pop], True),
        ("jazz", [tags.jazz], True),
        ("rock_live", [tags.rock, tags.live], True),
        ("untagged", [], True),
        ("retired", [tags.rock], False),
    ]:
        track = await track_service.create_track(
            title=key.replace("_", " ").title(),
            filename=f"{key}.mp3",
            duration_seconds=180,
            active=active,
            tag_ids=tag_ids,
        )
        setattr(tracks, key, track.id)

    return SimpleNamespace(tags=tags, tracks=tracks)


@pytest.fixture
async def station(db):
    """An active station without rules."""
    return await RadioStationService(db).create_station(name="Heavy Hitters!!", description="Loud stuff")
