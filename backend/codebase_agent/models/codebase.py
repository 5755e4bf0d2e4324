"""
Domain models for the Codebase Agent.

Everything here lives in memory for the duration of one request; nothing is
persisted. Wire format is camelCase (``projectType``, ``estimatedTime`` ...),
Python attributes are snake_case.
"""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from codebase_agent.utils.file_kinds import infer_category, infer_language


class CamelModel(BaseModel):
    """Base model with camelCase aliases on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ProjectType(str, PyEnum):
    WEB_APP = "web-app"
    API = "api"
    MOBILE_APP = "mobile-app"
    DESKTOP_APP = "desktop-app"
    CLI_TOOL = "cli-tool"
    LIBRARY = "library"
    MICROSERVICE = "microservice"
    FULL_STACK = "full-stack"


class TechStack(str, PyEnum):
    REACT = "react"
    NEXTJS = "nextjs"
    VUE = "vue"
    ANGULAR = "angular"
    SVELTE = "svelte"
    NODEJS = "nodejs"
    PYTHON = "python"
    JAVA = "java"
    GO = "go"
    RUST = "rust"
    PHP = "php"
    RUBY = "ruby"
    CSHARP = "csharp"
    FLUTTER = "flutter"
    REACT_NATIVE = "react-native"


class Complexity(str, PyEnum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class FileCategory(str, PyEnum):
    CODE = "code"
    CONFIG = "config"
    DOCUMENTATION = "documentation"
    TEST = "test"


class Severity(str, PyEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class OptimizationType(str, PyEnum):
    PERFORMANCE = "performance"
    READABILITY = "readability"
    SECURITY = "security"
    ALL = "all"


class CodebaseStatus(str, PyEnum):
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


class WorkspaceStatus(str, PyEnum):
    CREATING = "creating"
    RUNNING = "running"
    STOPPED = "stopped"
    ERROR = "error"


class DeploymentStatus(str, PyEnum):
    SUCCESS = "success"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Request / files
# ---------------------------------------------------------------------------

class GenerationRequest(CamelModel):
    """A submitted generation request. Immutable."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    prompt: str = Field(..., min_length=1)
    project_type: ProjectType
    tech_stack: list[TechStack] = Field(..., min_length=1)
    features: list[str] = Field(default_factory=list)
    complexity: Complexity = Complexity.MEDIUM
    include_tests: bool = True
    include_documentation: bool = True
    include_deployment: bool = False


class GeneratedFile(CamelModel):
    """
    One generated file. Identity is ``path`` (project-relative, ``/``-separated).

    ``category`` is also accepted under the legacy key ``type``; when it is
    missing or unrecognized it is inferred from the path.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    path: str = Field(..., min_length=1)
    content: str = ""
    category: FileCategory = Field(
        default=FileCategory.CODE,
        validation_alias=AliasChoices("category", "type"),
    )
    language: str = ""

    @model_validator(mode="before")
    @classmethod
    def fill_missing_kinds(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        path = str(data.get("path") or "")
        raw = data.get("category", data.get("type"))
        allowed = {c.value for c in FileCategory}
        if isinstance(raw, FileCategory):
            raw = raw.value
        if not isinstance(raw, str) or raw.lower() not in allowed:
            data.pop("type", None)
            data["category"] = infer_category(path)
        else:
            data.pop("type", None)
            data["category"] = raw.lower()
        if not data.get("language"):
            data["language"] = infer_language(path)
        if data.get("content") is None:
            data["content"] = ""
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def type(self) -> FileCategory:
        """Legacy name for ``category`` kept on the wire."""
        return self.category


# ---------------------------------------------------------------------------
# Plan / validation / optimization
# ---------------------------------------------------------------------------

class PlanStep(CamelModel):
    step: int
    description: str = ""
    files: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)


class DevelopmentPlan(CamelModel):
    plan: str
    steps: list[PlanStep] = Field(default_factory=list)
    is_fallback: bool = False


class ValidationIssue(CamelModel):
    file: str
    line: int | None = None
    severity: Severity = Severity.INFO
    message: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def normalise_severity(cls, v: Any) -> Any:
        if isinstance(v, str) and v.lower() in {s.value for s in Severity}:
            return v.lower()
        if isinstance(v, Severity):
            return v
        return Severity.INFO

    @field_validator("line", mode="before")
    @classmethod
    def coerce_line(cls, v: Any) -> int | None:
        try:
            return int(v) if v is not None else None
        except (TypeError, ValueError):
            return None


class ValidationReport(CamelModel):
    """Review outcome. Consumed by remediation and then discarded."""

    is_valid: bool = False
    issues: list[ValidationIssue] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]


class CodeChange(CamelModel):
    line: int | None = None
    original: str = ""
    optimized: str = ""
    reason: str = ""


class OptimizationResult(CamelModel):
    optimized_content: str
    changes: list[CodeChange] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Codebase response
# ---------------------------------------------------------------------------

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_codebase_id() -> str:
    """Opaque ``codebase_<epoch-ms>_<9 random chars>`` token."""
    token = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"codebase_{int(time.time() * 1000)}_{token}"


class CodebaseResponse(CamelModel):
    """
    The unit handed to the UI, the deploy workflow and the download action.

    ``completed`` always carries files; ``error`` never does and carries the
    message both in ``error`` and (for older clients) in ``instructions``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_codebase_id)
    status: CodebaseStatus
    files: list[GeneratedFile] = Field(default_factory=list)
    structure: str = ""
    instructions: str = ""
    estimated_time: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    error: str | None = None

    @model_validator(mode="after")
    def check_status_invariant(self) -> "CodebaseResponse":
        if self.status == CodebaseStatus.COMPLETED and not self.files:
            raise ValueError("a completed codebase must contain at least one file")
        if self.status == CodebaseStatus.ERROR:
            if self.files:
                raise ValueError("an errored codebase must not contain files")
            if not self.instructions:
                raise ValueError("an errored codebase must carry its error message")
        return self


# ---------------------------------------------------------------------------
# Sandbox
# ---------------------------------------------------------------------------

class Workspace(CamelModel):
    """Remote sandbox workspace, as reported by the provider."""

    id: str
    name: str = ""
    status: WorkspaceStatus = WorkspaceStatus.CREATING
    url: str = ""
    git_url: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v: Any) -> Any:
        if isinstance(v, WorkspaceStatus):
            return v
        if isinstance(v, str) and v.lower() in {s.value for s in WorkspaceStatus}:
            return v.lower()
        return WorkspaceStatus.ERROR

    @field_validator("url", mode="before")
    @classmethod
    def none_url(cls, v: Any) -> Any:
        return v or ""

    @field_validator("created_at", mode="before")
    @classmethod
    def default_created_at(cls, v: Any) -> Any:
        return v or datetime.now(timezone.utc)


class DeploymentResult(CamelModel):
    workspace_url: str = ""
    logs: list[str] = Field(default_factory=list)
    status: DeploymentStatus

    @property
    def success(self) -> bool:
        return self.status == DeploymentStatus.SUCCESS
