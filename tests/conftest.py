import os
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# Default to the memory backend so importing the app never touches ./data
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from task_api.db import SQLiteRepository  # noqa: E402
from task_api.main import app  # noqa: E402
from task_api.repositories import InMemoryRepository, Repository, get_repository  # noqa: E402


@pytest.fixture()
def memory_repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture()
def sqlite_repo(tmp_path: Path) -> SQLiteRepository:
    return SQLiteRepository(str(tmp_path / "tasks.db"))


@pytest.fixture(params=["memory", "sqlite"])
def repo(request: pytest.FixtureRequest) -> Repository:
    """Fresh, empty repository; tests using it run once per backend."""
    return request.getfixturevalue(f"{request.param}_repo")


@pytest.fixture()
def client(repo: Repository) -> Iterator[TestClient]:
    """TestClient whose handlers all see the same fresh repository."""
    app.dependency_overrides[get_repository] = lambda: repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
