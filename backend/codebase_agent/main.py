"""
Main FastAPI application for the Codebase Agent.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from codebase_agent.api.routes import error_response, router
from codebase_agent.config import Settings, settings
from codebase_agent.core.engine import CodebaseOrchestrator
from codebase_agent.core.logging import configure_logging
from codebase_agent.services.code_generator import CodeGenerator
from codebase_agent.services.llm_service import LLMService
from codebase_agent.services.pipe_client import PipeClient
from codebase_agent.services.plan_review import PlanReviewService
from codebase_agent.services.sandbox import SandboxService


def build_services(config: Settings) -> tuple[CodebaseOrchestrator, SandboxService]:
    """Construct every service once and wire them into the orchestrator."""
    llm = LLMService(
        api_key=config.anthropic_api_key,
        model=config.codegen_model,
        max_tokens=config.codegen_max_tokens,
        temperature=config.codegen_temperature,
        max_retries=config.remote_max_retries,
    )
    pipe = PipeClient(
        base_url=config.pipe_api_url,
        api_key=config.pipe_api_key,
        timeout=config.pipe_timeout,
        max_retries=config.remote_max_retries,
    )
    sandbox = SandboxService(
        base_url=config.sandbox_api_url,
        api_key=config.sandbox_api_key,
        timeout=config.sandbox_timeout,
        command_timeout_ms=config.sandbox_command_timeout_ms,
    )
    orchestrator = CodebaseOrchestrator(
        planner=PlanReviewService(pipe),
        generator=CodeGenerator(llm, file_max_tokens=config.codegen_file_max_tokens),
        sandbox=sandbox,
    )
    return orchestrator, sandbox


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan – startup and shutdown hooks."""
    configure_logging(settings)
    logger.info("🚀 Starting {} API  env={}", settings.app_name, settings.environment)

    for name, value in (
        ("ANTHROPIC_API_KEY", settings.anthropic_api_key),
        ("PIPE_API_KEY", settings.pipe_api_key),
        ("SANDBOX_API_KEY", settings.sandbox_api_key),
    ):
        if not value:
            logger.warning("{} is not set — related calls will be rejected upstream", name)

    app.state.orchestrator, app.state.sandbox = build_services(settings)

    yield

    logger.info("🛑 Shutting down {} API", settings.app_name)


app = FastAPI(
    title=f"{settings.app_name} API",
    description=settings.app_description,
    version=settings.app_version,
    lifespan=lifespan,
    debug=settings.debug,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(router, prefix="/api")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body", details)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on {} {}", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(exc))


@app.get("/", tags=["meta"])
async def root() -> dict:
    return {"name": settings.app_name, "version": settings.app_version, "status": "running",
            "environment": settings.environment}


@app.get("/health", tags=["meta"])
async def health_check() -> dict:
    return {"status": "healthy", "environment": settings.environment}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "codebase_agent.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        workers=1 if settings.api_reload else settings.api_workers,
    )
