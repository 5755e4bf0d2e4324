"""
API routes for the Codebase Agent.

Every failure reaches the client as a JSON ``{error, details}`` envelope;
the orchestrator's own workflows report failures inside a normal 200 body.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError

from codebase_agent.config import settings
from codebase_agent.core.engine import CodebaseOrchestrator
from codebase_agent.models.codebase import (
    CodebaseResponse,
    DeploymentStatus,
    FileCategory,
    ProjectType,
    TechStack,
)
from codebase_agent.schemas.requests import DeployRequest, GenerateRequestBody, OptimizeRequest
from codebase_agent.schemas.responses import (
    DeployResponse,
    ErrorResponse,
    OptimizeResponse,
    ServiceInfoResponse,
    WorkspaceDeletedResponse,
    WorkspaceListResponse,
    WorkspaceLogsResponse,
)
from codebase_agent.services.sandbox import SandboxService

router = APIRouter()


# ── Dependency helpers ────────────────────────────────────────────────────────

def get_orchestrator(request: Request) -> CodebaseOrchestrator:
    return request.app.state.orchestrator


def get_sandbox_service(request: Request) -> SandboxService:
    return request.app.state.sandbox


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ── Generation ────────────────────────────────────────────────────────────────

@router.get("/generate", response_model=ServiceInfoResponse, tags=["generate"])
async def service_info() -> ServiceInfoResponse:
    """Describe the API and the supported request vocabulary."""
    return ServiceInfoResponse(
        message=f"{settings.app_name} API",
        version=settings.app_version,
        endpoints={
            "generate": "POST /api/generate - Generate a complete codebase",
            "deploy": "POST /api/deploy - Deploy codebase to sandbox",
            "optimize": "POST /api/optimize - Optimize existing codebase",
            "workspaces": "GET /api/workspaces - List all workspaces",
        },
        supported_project_types=[p.value for p in ProjectType],
        supported_tech_stacks=[t.value for t in TechStack],
    )


@router.post(
    "/generate",
    response_model=CodebaseResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["generate"],
)
async def generate(
    body: GenerateRequestBody,
    orchestrator: CodebaseOrchestrator = Depends(get_orchestrator),
):
    """Run the generation pipeline. Pipeline failures come back as ``status: error``."""
    if body.missing_required():
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Missing required fields: prompt, projectType, and techStack are required",
        )

    try:
        gen_request = body.to_generation_request()
    except ValidationError as exc:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid generation request", str(exc))

    try:
        logger.info(
            "New generation — type={} stack={} prompt={!r:.80}",
            gen_request.project_type.value,
            [t.value for t in gen_request.tech_stack],
            gen_request.prompt,
        )
        return await orchestrator.generate_codebase(gen_request)
    except Exception as exc:
        logger.exception("Error in generate API")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to generate codebase", str(exc)
        )


# ── Deployment ────────────────────────────────────────────────────────────────

@router.post(
    "/deploy",
    response_model=DeployResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["deploy"],
)
async def deploy(
    body: DeployRequest,
    orchestrator: CodebaseOrchestrator = Depends(get_orchestrator),
):
    """Deploy a generated codebase into a fresh sandbox workspace."""
    payload = body.codebase_response
    if payload is None or not payload.files:
        return error_response(
            status.HTTP_400_BAD_REQUEST, "Invalid codebase response: files are required"
        )

    try:
        result = await orchestrator.deploy_to_sandbox(payload.to_codebase_response())
    except Exception as exc:
        logger.exception("Error in deploy API")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to deploy codebase", str(exc)
        )

    return DeployResponse(
        success=result.status == DeploymentStatus.SUCCESS,
        workspace_url=result.workspace_url,
        logs=result.logs,
        status=result.status,
    )


# ── Optimization ──────────────────────────────────────────────────────────────

@router.post(
    "/optimize",
    response_model=OptimizeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["optimize"],
)
async def optimize(
    body: OptimizeRequest,
    orchestrator: CodebaseOrchestrator = Depends(get_orchestrator),
):
    """Rewrite every code file for the requested optimization type."""
    if not body.files:
        return error_response(status.HTTP_400_BAD_REQUEST, "Files are required for optimization")
    if body.optimization_type is None:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Optimization type is required (performance, readability, security, or all)",
        )

    try:
        optimized = await orchestrator.optimize_codebase(body.files, body.optimization_type)
    except Exception as exc:
        logger.exception("Error in optimize API")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to optimize codebase", str(exc)
        )

    return OptimizeResponse(
        optimized_files=optimized,
        optimization_type=body.optimization_type,
        files_optimized=sum(1 for f in optimized if f.category == FileCategory.CODE),
    )


# ── Workspaces ────────────────────────────────────────────────────────────────

@router.get(
    "/workspaces",
    response_model=WorkspaceListResponse,
    responses={500: {"model": ErrorResponse}},
    tags=["workspaces"],
)
async def list_workspaces(sandbox: SandboxService = Depends(get_sandbox_service)):
    try:
        workspaces = await sandbox.list_workspaces()
    except Exception as exc:
        logger.exception("Error listing workspaces")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to list workspaces", str(exc)
        )
    return WorkspaceListResponse(workspaces=workspaces, count=len(workspaces))


@router.delete(
    "/workspaces",
    response_model=WorkspaceDeletedResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["workspaces"],
)
async def delete_workspace(
    workspace_id: str | None = Query(default=None, alias="id"),
    sandbox: SandboxService = Depends(get_sandbox_service),
):
    if not workspace_id:
        return error_response(status.HTTP_400_BAD_REQUEST, "Workspace ID is required")
    try:
        await sandbox.delete_workspace(workspace_id)
    except Exception as exc:
        logger.exception("Error deleting workspace")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete workspace", str(exc)
        )
    return WorkspaceDeletedResponse()


@router.get(
    "/workspaces/{workspace_id}/logs",
    response_model=WorkspaceLogsResponse,
    tags=["workspaces"],
)
async def workspace_logs(
    workspace_id: str,
    sandbox: SandboxService = Depends(get_sandbox_service),
) -> WorkspaceLogsResponse:
    """Provider logs for one workspace; failures come back as a log line."""
    return WorkspaceLogsResponse(logs=await sandbox.get_workspace_logs(workspace_id))
