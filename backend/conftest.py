"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from codebase_agent.api.routes import get_orchestrator, get_sandbox_service
from codebase_agent.main import app
from codebase_agent.models.codebase import GeneratedFile, GenerationRequest


# ── Domain samples ────────────────────────────────────────────────────────────

@pytest.fixture
def todo_request() -> GenerationRequest:
    return GenerationRequest(
        prompt="todo app",
        project_type="web-app",
        tech_stack=["react"],
        features=["auth"],
        complexity="medium",
        include_tests=True,
    )


@pytest.fixture
def react_files() -> list[GeneratedFile]:
    return [
        GeneratedFile(
            path="package.json",
            content='{"name": "todo", "dependencies": {"react": "^18.2.0"}}',
            category="config",
            language="json",
        ),
        GeneratedFile(
            path="src/App.jsx",
            content="export default function App() { return null; }\n",
            category="code",
            language="javascript",
        ),
    ]


# ── App test client ───────────────────────────────────────────────────────────

@pytest.fixture
def orchestrator_stub() -> MagicMock:
    stub = MagicMock()
    stub.generate_codebase = AsyncMock()
    stub.deploy_to_sandbox = AsyncMock()
    stub.optimize_codebase = AsyncMock()
    return stub


@pytest.fixture
def sandbox_stub() -> MagicMock:
    stub = MagicMock()
    stub.list_workspaces = AsyncMock(return_value=[])
    stub.delete_workspace = AsyncMock(return_value=None)
    stub.get_workspace_logs = AsyncMock(return_value=[])
    return stub


@pytest.fixture
def client(orchestrator_stub: MagicMock, sandbox_stub: MagicMock) -> Iterator[TestClient]:
    """FastAPI test client with stubbed services (lifespan not started)."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator_stub
    app.dependency_overrides[get_sandbox_service] = lambda: sandbox_stub
    yield TestClient(app)
    app.dependency_overrides.clear()
