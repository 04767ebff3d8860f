"""Service test fixtures with in-memory fake repos."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Make _helpers importable from test files
sys.path.insert(0, str(Path(__file__).parent))

from _helpers import InMemoryStore, InMemoryUsersRepo, InMemoryWorkspaceRepo  # noqa: E402

from funnelboard_service.db.deps import get_users_repo, get_workspace_repo  # noqa: E402
from funnelboard_service.rest.app import create_app  # noqa: E402


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def workspace_repo(store: InMemoryStore) -> InMemoryWorkspaceRepo:
    return InMemoryWorkspaceRepo(store)


@pytest.fixture
def app(store: InMemoryStore, workspace_repo: InMemoryWorkspaceRepo):
    """The full app, middleware included, backed by in-memory repos (no database needed)."""
    app = create_app(with_lifespan=False)
    users_repo = InMemoryUsersRepo(store)
    app.dependency_overrides[get_workspace_repo] = lambda: workspace_repo
    app.dependency_overrides[get_users_repo] = lambda: users_repo
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app, follow_redirects=False)
