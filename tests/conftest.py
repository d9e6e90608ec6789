# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from lightbox.api.v1.endpoints import media as media_endpoints
from lightbox.db.session import Base
from lightbox.db.session import get_db as app_get_session
from lightbox.main import app as fastapi_app
from lightbox.models import Media, Story, StoryImage
from lightbox.services.image_host import ImageHostDisabledError, ImageHostError, ImageResource

TEST_DB_URL = "sqlite://"

_PUBLIC_ID_COUNTER = count(1)
_SLUG_COUNTER = count(1)
_BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite defers BEGIN on its own; take over so SAVEPOINTs nest correctly.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record) -> None:  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn) -> None:  # pragma: no cover - driver hook
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def fail_media_update() -> Iterator[Callable[[int], None]]:
    """Arm a one-shot failure on the Nth media row UPDATE.

    The hook runs after the UPDATE statements of a flush have been emitted,
    so the database already holds the new values when the flush fails.
    """
    state: dict[str, int | None] = {"calls": 0, "fail_at": None}

    def _after_update(_mapper, _connection, _target) -> None:
        state["calls"] += 1
        if state["fail_at"] is not None and state["calls"] >= state["fail_at"]:
            state["fail_at"] = None
            raise SQLAlchemyError("simulated store failure")

    def _arm(nth: int) -> None:
        state["calls"] = 0
        state["fail_at"] = nth

    event.listen(Media, "after_update", _after_update)
    try:
        yield _arm
    finally:
        event.remove(Media, "after_update", _after_update)


@pytest.fixture()
def stored_media(db_session: Session) -> Callable[..., list[Any]]:
    """Read media columns through a separate session on the test connection."""

    def _read(column: Any, ids: list[int]) -> list[Any]:
        with Session(bind=db_session.get_bind(), join_transaction_mode="create_savepoint") as fresh:
            values = dict(fresh.execute(select(Media.id, column).where(Media.id.in_(ids))).all())
        return [values[i] for i in ids]

    return _read


class FakeImageHost:
    """In-memory stand-in for the image host client."""

    def __init__(self) -> None:
        self.destroyed: list[str] = []
        self.resources: dict[str, ImageResource] = {}
        self.fail_destroy: set[str] = set()
        self.enabled = True

    async def destroy(self, public_id: str) -> bool:
        if not self.enabled:
            raise ImageHostDisabledError("disabled")
        if public_id in self.fail_destroy:
            raise ImageHostError(f"refused {public_id}")
        self.destroyed.append(public_id)
        return True

    async def fetch_resource(self, public_id: str) -> ImageResource | None:
        if not self.enabled:
            raise ImageHostDisabledError("disabled")
        return self.resources.get(public_id)

    async def close(self) -> None:
        return None


@pytest.fixture()
def image_host(app: FastAPI) -> Iterator[FakeImageHost]:
    """Route image host calls to an in-memory fake."""
    fake = FakeImageHost()
    app.dependency_overrides[media_endpoints.get_image_host_dep] = lambda: fake
    try:
        yield fake
    finally:
        app.dependency_overrides.pop(media_endpoints.get_image_host_dep, None)


@pytest.fixture()
def client(app: FastAPI, image_host: FakeImageHost) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _timestamp(minutes: int | None) -> datetime:
    return _BASE_TIME + timedelta(minutes=minutes or 0)


@pytest.fixture()
def make_media(db_session: Session) -> Callable[..., Media]:
    """Factory for media rows.

    ``minutes`` offsets ``created_at`` from a fixed base so tests control the
    newest-first tie break. Flags and positions are written as given.
    """

    def _make(minutes: int | None = None, **fields: Any) -> Media:
        public_id = fields.pop("cloudinary_public_id", f"portfolio/img-{next(_PUBLIC_ID_COUNTER)}")
        media = Media(
            cloudinary_public_id=public_id,
            cloudinary_url=f"https://res.cloudinary.com/demo/image/upload/{public_id}",
            created_at=_timestamp(minutes),
            updated_at=_timestamp(minutes),
            **fields,
        )
        db_session.add(media)
        db_session.flush()
        db_session.refresh(media)
        return media

    return _make


@pytest.fixture()
def make_story(db_session: Session) -> Callable[..., Story]:
    """Factory for stories with unique slugs."""

    def _make(minutes: int | None = None, **fields: Any) -> Story:
        n = next(_SLUG_COUNTER)
        story = Story(
            slug=fields.pop("slug", f"story-{n}"),
            title=fields.pop("title", f"Story {n}"),
            created_at=_timestamp(minutes),
            updated_at=_timestamp(minutes),
            **fields,
        )
        db_session.add(story)
        db_session.flush()
        db_session.refresh(story)
        return story

    return _make


@pytest.fixture()
def make_story_image(db_session: Session) -> Callable[..., StoryImage]:
    """Factory for story images; ``order_index`` defaults to 0 as in the schema."""

    def _make(story: Story, minutes: int | None = None, **fields: Any) -> StoryImage:
        image = StoryImage(
            story_id=story.id,
            cloudinary_public_id=fields.pop(
                "cloudinary_public_id", f"stories/img-{next(_PUBLIC_ID_COUNTER)}"
            ),
            created_at=_timestamp(minutes),
            **fields,
        )
        db_session.add(image)
        db_session.flush()
        db_session.refresh(image)
        return image

    return _make
