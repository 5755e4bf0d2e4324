"""
Best-effort heuristics over a generated file set.

Everything here looks only at exact root-level marker paths and, for
``package.json``, at raw substrings of its content. Nothing is parsed.

Known false positives:
- any ``package.json`` mentioning "next" (e.g. ``"next-auth"`` or a script
  called ``next-step``) is treated as Next.js, and one mentioning "react"
  (``"react-icons"`` on a Vue project) as React.
- any path containing "migration" or "schema" (``src/schemas/user.ts``)
  triggers the database advisory.
Known false negatives:
- manifests below the root (``frontend/package.json``) are ignored.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from codebase_agent.models.codebase import GeneratedFile

PACKAGE_JSON = "package.json"
REQUIREMENTS_TXT = "requirements.txt"
GO_MOD = "go.mod"
CARGO_TOML = "Cargo.toml"
DOCKERFILE = "Dockerfile"

# Stacks whose package.json needs an explicit build step
BUILD_FRAMEWORKS = ("nextjs", "react")

DB_ADVISORY = "# Database setup required - check migration files"


def find_file(files: Iterable[GeneratedFile], path: str) -> GeneratedFile | None:
    return next((f for f in files if f.path == path), None)


def has_file(files: Iterable[GeneratedFile], path: str) -> bool:
    return find_file(files, path) is not None


def detect_template(files: Sequence[GeneratedFile]) -> str:
    """Workspace template: nextjs | react | vue | nodejs | python | golang | rust | blank."""
    package_json = find_file(files, PACKAGE_JSON)
    if package_json is not None:
        content = package_json.content
        if "next" in content:
            return "nextjs"
        if "react" in content:
            return "react"
        if "vue" in content:
            return "vue"
        return "nodejs"
    if has_file(files, REQUIREMENTS_TXT):
        return "python"
    if has_file(files, GO_MOD):
        return "golang"
    if has_file(files, CARGO_TOML):
        return "rust"
    return "blank"


def detect_project_type(files: Sequence[GeneratedFile]) -> str:
    if any("pages" in f.path or "components" in f.path for f in files):
        return "web-app"
    if any("api" in f.path or "routes" in f.path for f in files):
        return "api"
    return "application"


def detect_tech_stack(files: Sequence[GeneratedFile]) -> list[str]:
    stack: list[str] = []
    package_json = find_file(files, PACKAGE_JSON)
    if package_json is not None:
        for marker, name in (("next", "nextjs"), ("react", "react"), ("vue", "vue"), ("express", "express")):
            if marker in package_json.content:
                stack.append(name)
    if has_file(files, REQUIREMENTS_TXT):
        stack.append("python")
    if has_file(files, GO_MOD):
        stack.append("golang")
    if has_file(files, CARGO_TOML):
        stack.append("rust")
    return stack


def generate_setup_commands(files: Sequence[GeneratedFile], tech_stack: Sequence[str]) -> list[str]:
    """
    Setup commands in fixed group order: node, python, go, rust, database
    advisory, docker. Groups accumulate independently.
    """
    commands: list[str] = []

    if has_file(files, PACKAGE_JSON):
        commands.append("npm install")
        if any(fw in tech_stack for fw in BUILD_FRAMEWORKS):
            commands.append("npm run build")

    if has_file(files, REQUIREMENTS_TXT):
        commands.append("pip install -r requirements.txt")

    if has_file(files, GO_MOD):
        commands.append("go mod tidy")
        commands.append("go build")

    if has_file(files, CARGO_TOML):
        commands.append("cargo build")

    if any("migration" in f.path or "schema" in f.path for f in files):
        commands.append(DB_ADVISORY)

    if has_file(files, DOCKERFILE):
        commands.append("docker build -t project .")

    return commands
