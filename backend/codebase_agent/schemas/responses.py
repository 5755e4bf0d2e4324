"""Response schemas."""

from __future__ import annotations

from codebase_agent.models.codebase import (
    CamelModel,
    DeploymentStatus,
    GeneratedFile,
    OptimizationType,
    Workspace,
)


class ErrorResponse(CamelModel):
    error: str
    details: str | None = None


class ServiceInfoResponse(CamelModel):
    message: str
    version: str
    endpoints: dict[str, str]
    supported_project_types: list[str]
    supported_tech_stacks: list[str]


class DeployResponse(CamelModel):
    success: bool
    workspace_url: str
    logs: list[str]
    status: DeploymentStatus


class OptimizeResponse(CamelModel):
    success: bool = True
    optimized_files: list[GeneratedFile]
    optimization_type: OptimizationType
    files_optimized: int


class WorkspaceListResponse(CamelModel):
    success: bool = True
    workspaces: list[Workspace]
    count: int


class WorkspaceDeletedResponse(CamelModel):
    success: bool = True
    message: str = "Workspace deleted successfully"


class WorkspaceLogsResponse(CamelModel):
    success: bool = True
    logs: list[str]
