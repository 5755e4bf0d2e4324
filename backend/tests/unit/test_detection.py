"""
Unit tests for project detection heuristics and setup-command derivation.
"""

from __future__ import annotations

import pytest

from codebase_agent.core.detection import (
    DB_ADVISORY,
    detect_project_type,
    detect_tech_stack,
    detect_template,
    generate_setup_commands,
)
from codebase_agent.models.codebase import GeneratedFile


def _files(*paths: str, package_json: str = "{}") -> list[GeneratedFile]:
    return [
        GeneratedFile(path=p, content=package_json if p == "package.json" else "")
        for p in paths
    ]


# ── generate_setup_commands ───────────────────────────────────────────────────

class TestGenerateSetupCommands:
    def test_react_node_project(self) -> None:
        files = _files("package.json", "src/App.jsx", package_json='{"dependencies": {"react": "18"}}')
        assert generate_setup_commands(files, ["react"]) == ["npm install", "npm run build"]

    def test_plain_node_has_no_build(self) -> None:
        files = _files("package.json", "index.js")
        assert generate_setup_commands(files, ["express"]) == ["npm install"]

    def test_python_with_schema_and_dockerfile(self) -> None:
        files = _files("requirements.txt", "app/schema.py", "Dockerfile")
        assert generate_setup_commands(files, ["python"]) == [
            "pip install -r requirements.txt",
            DB_ADVISORY,
            "docker build -t project .",
        ]

    def test_go_before_rust(self) -> None:
        files = _files("Cargo.toml", "go.mod")
        assert generate_setup_commands(files, []) == ["go mod tidy", "go build", "cargo build"]

    def test_migration_path_triggers_advisory(self) -> None:
        files = _files("db/migrations/001_init.sql")
        assert generate_setup_commands(files, []) == [DB_ADVISORY]

    def test_nested_manifest_is_ignored(self) -> None:
        files = _files("frontend/package.json", "backend/requirements.txt")
        assert generate_setup_commands(files, ["react"]) == []

    def test_empty_file_set(self) -> None:
        assert generate_setup_commands([], ["react"]) == []


# ── detect_template ───────────────────────────────────────────────────────────

class TestDetectTemplate:
    @pytest.mark.parametrize(
        ("package_json", "expected"),
        [
            ('{"dependencies": {"next": "14", "react": "18"}}', "nextjs"),
            ('{"dependencies": {"react": "18"}}', "react"),
            ('{"dependencies": {"vue": "3"}}', "vue"),
            ('{"dependencies": {"express": "4"}}', "nodejs"),
        ],
    )
    def test_node_templates(self, package_json: str, expected: str) -> None:
        assert detect_template(_files("package.json", package_json=package_json)) == expected

    @pytest.mark.parametrize(
        ("path", "expected"),
        [("requirements.txt", "python"), ("go.mod", "golang"), ("Cargo.toml", "rust"), ("main.c", "blank")],
    )
    def test_other_templates(self, path: str, expected: str) -> None:
        assert detect_template(_files(path)) == expected


# ── detect_project_type / detect_tech_stack ───────────────────────────────────

class TestDetectProject:
    def test_project_type(self) -> None:
        assert detect_project_type(_files("src/components/Button.jsx")) == "web-app"
        assert detect_project_type(_files("src/routes/users.py")) == "api"
        assert detect_project_type(_files("main.py")) == "application"

    def test_tech_stack_collects_all_markers(self) -> None:
        files = _files(
            "package.json",
            "requirements.txt",
            package_json='{"dependencies": {"react": "18", "express": "4"}}',
        )
        assert detect_tech_stack(files) == ["react", "express", "python"]

    def test_setup_commands_from_detected_stack(self, react_files: list[GeneratedFile]) -> None:
        stack = detect_tech_stack(react_files)
        assert stack == ["react"]
        assert generate_setup_commands(react_files, stack) == ["npm install", "npm run build"]
