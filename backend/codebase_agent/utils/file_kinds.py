"""
Path-based classification of generated files.

Used when the generation model omits (or garbles) the ``category`` or
``language`` of a file. Purely a function of the path; content is never read.
"""

from __future__ import annotations

from pathlib import PurePosixPath

EXTENSION_TO_LANGUAGE: dict[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".vue": "vue",
    ".svelte": "svelte",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".dart": "dart",
    ".sql": "sql",
    ".sh": "shell",
    ".bash": "shell",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
    ".md": "markdown",
    ".html": "html",
    ".css": "css",
    ".scss": "css",
    ".toml": "toml",
    ".env": "env",
}

_CONFIG_EXTENSIONS = {".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".env", ".lock"}
_CONFIG_NAMES = {
    "dockerfile", "makefile", "procfile", "requirements.txt", "go.mod", "go.sum",
    "cargo.toml", "package.json", "tsconfig.json", ".gitignore", ".dockerignore",
    ".env.example",
}
_DOC_EXTENSIONS = {".md", ".rst", ".txt", ".adoc"}
_TEST_DIRS = {"test", "tests", "__tests__", "spec", "specs"}


def infer_language(path: str) -> str:
    """Language tag for display/grouping; ``text`` when unknown."""
    p = PurePosixPath(path)
    if p.name.lower() == "dockerfile":
        return "dockerfile"
    return EXTENSION_TO_LANGUAGE.get(p.suffix.lower(), "text")


def infer_category(path: str) -> str:
    """
    Best-effort category for a generated file path.

    Known misses: a ``docs/`` directory holding runnable examples is
    classified as documentation, and fixture JSON under ``tests/`` as test.
    """
    p = PurePosixPath(path)
    name = p.name.lower()
    parts = {part.lower() for part in p.parts[:-1]}

    if (
        parts & _TEST_DIRS
        or name.startswith("test_")
        or ".test." in name
        or ".spec." in name
        or name.endswith("_test.go")
    ):
        return "test"
    if name in _CONFIG_NAMES or (name.startswith(".") and not p.suffix):
        return "config"
    if "docs" in parts or p.suffix.lower() in _DOC_EXTENSIONS:
        return "documentation"
    if p.suffix.lower() in _CONFIG_EXTENSIONS or name.startswith(".env"):
        return "config"
    return "code"
