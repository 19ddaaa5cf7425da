# tests/conftest.py

from __future__ import annotations

import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["OPENAI_API_KEY"] = ""

from datetime import datetime
from typing import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from taskflow.database import Base, get_db
from taskflow.models import Subtask, Task
from taskflow.services.assistant import get_assistant
from taskflow.utils.auth import create_access_token

from .fakes import FakeAssistant, FakeClock


@pytest.fixture()
def engine():
    """Fresh in-memory SQLite database per test, shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory) -> Session:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def assistant() -> FakeAssistant:
    return FakeAssistant()


@pytest.fixture()
def client(session_factory, assistant) -> TestClient:
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_assistant] = lambda: assistant
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers() -> Callable[[str], dict]:
    def _headers(owner_id: str = "owner-1") -> dict:
        token = create_access_token({"sub": owner_id})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_task(db_session) -> Callable[..., Task]:
    """Insert a task straight through the ORM."""

    def _make(owner_id: str = "owner-1", title: str = "Task", subtasks=(), **fields) -> Task:
        task = Task(
            owner_id=owner_id,
            title=title,
            tags=fields.pop("tags", []),
            dependencies=fields.pop("dependencies", []),
            subtasks=[Subtask(**s) for s in subtasks],
            created_at=fields.pop("created_at", datetime.utcnow()),
            **fields,
        )
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task

    return _make
