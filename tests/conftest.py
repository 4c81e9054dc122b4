from __future__ import annotations

import importlib
from collections.abc import Callable
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.taskqueue.domain.repositories import MessageTaskRepository
from src.taskqueue.infrastructure.postgres.orm import PostgresOrm
from src.taskqueue.infrastructure.postgres.repositories import PostgresMessageTaskRepository

from .fakes import FakeClock, StubMessageTaskRepository


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def orm(tmp_path: Path):
    """SQLite-backed ORM with the message_tasks schema created."""
    orm = PostgresOrm(f"sqlite+aiosqlite:///{tmp_path / 'tasks.sqlite3'}")
    await orm.create_schema()
    yield orm
    await orm.dispose()


@pytest.fixture
def repository(orm: PostgresOrm, clock: FakeClock) -> PostgresMessageTaskRepository:
    return PostgresMessageTaskRepository(orm, clock=clock)


@pytest.fixture
def stub_repository() -> StubMessageTaskRepository:
    return StubMessageTaskRepository()


def _patch_inject_instance(
    monkeypatch: pytest.MonkeyPatch, repository: MessageTaskRepository
) -> Callable[[object], object]:
    """Patch `inject.instance` to always return the stub repository."""
    import inject

    def fake_instance(interface: object) -> object:
        if interface is MessageTaskRepository:
            return repository
        raise RuntimeError(f"Unexpected dependency request: {interface}")

    monkeypatch.setattr(inject, "instance", fake_instance)
    return fake_instance


@pytest.fixture
def api_client(monkeypatch: pytest.MonkeyPatch, stub_repository: StubMessageTaskRepository):
    """FastAPI test client with routes wired to the in-memory repository."""
    monkeypatch.setenv("MAX_LIST_LIMIT", "50")
    _patch_inject_instance(monkeypatch, stub_repository)

    # Reload so the module-level service picks up the patched injector.
    routes_module = importlib.reload(importlib.import_module("src.taskqueue.presentation.routes"))

    app = FastAPI()
    app.include_router(routes_module.router)
    client = TestClient(app)
    return client, stub_repository
