"""
Core Engine – Plan → Generate → Validate → Remediate orchestrator.

Three public workflows sit on top of the services:

- ``generate_codebase``  request → plan → files → review → fixes → response
- ``deploy_to_sandbox``  response → workspace → upload → setup commands
- ``optimize_codebase``  files → per-file rewrite

Stages run strictly one after another. ``generate_codebase`` and
``deploy_to_sandbox`` never raise: a failure anywhere becomes an ``error``
result.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from enum import Enum

from loguru import logger

from codebase_agent.core.detection import (
    detect_project_type,
    detect_tech_stack,
    detect_template,
    generate_setup_commands,
)
from codebase_agent.core.rendering import render_instructions, render_structure
from codebase_agent.models.codebase import (
    CodebaseResponse,
    CodebaseStatus,
    DeploymentResult,
    DeploymentStatus,
    FileCategory,
    GeneratedFile,
    GenerationRequest,
    OptimizationType,
    Severity,
    ValidationIssue,
    new_codebase_id,
)
from codebase_agent.services.code_generator import CodeGenerator
from codebase_agent.services.plan_review import PlanReviewService
from codebase_agent.services.sandbox import SandboxService
from codebase_agent.utils.exceptions import GenerationError


class EnginePhase(str, Enum):
    PLANNING = "planning"
    GENERATING = "generating"
    VALIDATING = "validating"
    REMEDIATING = "remediating"
    RENDERING = "rendering"


class CodebaseOrchestrator:
    """
    Coordinates planning, generation, review and sandbox deployment.

    Guarantees:
    - A ``completed`` response always carries at least one file
    - An ``error`` response never carries files and always carries a message
    - Only files named by an ``error``-severity issue are ever regenerated
    - Optimization keeps file count and order
    """

    def __init__(
        self,
        planner: PlanReviewService,
        generator: CodeGenerator,
        sandbox: SandboxService,
    ) -> None:
        self.planner = planner
        self.generator = generator
        self.sandbox = sandbox

    # -----------------------------------------------------------------------
    # Generation
    # -----------------------------------------------------------------------

    async def generate_codebase(self, request: GenerationRequest) -> CodebaseResponse:
        started = time.monotonic()
        codebase_id = new_codebase_id()
        phase = EnginePhase.PLANNING
        logger.info("🔄 Generation starting — id={}", codebase_id)

        try:
            plan = await self.planner.orchestrate_code_generation(request)

            phase = EnginePhase.GENERATING
            files = await self.generator.generate_codebase(request)
            if not files:
                raise GenerationError("Code generation returned no files")

            phase = EnginePhase.VALIDATING
            report = await self.planner.validate_codebase(
                [{"path": f.path, "content": f.content, "language": f.language} for f in files]
            )

            if not report.is_valid:
                phase = EnginePhase.REMEDIATING
                files = await self.fix_critical_issues(files, report.issues)

            phase = EnginePhase.RENDERING
            structure = render_structure(files)
            instructions = render_instructions(request, files, plan)

        except Exception as exc:
            logger.exception("💥 Generation failed during {} — id={}", phase.value, codebase_id)
            message = f"Error generating codebase: {str(exc) or type(exc).__name__}"
            return CodebaseResponse(
                id=codebase_id,
                status=CodebaseStatus.ERROR,
                files=[],
                structure="",
                instructions=message,
                estimated_time=_elapsed_ms(started),
                error=message,
            )

        elapsed = _elapsed_ms(started)
        logger.info("✅ Generation complete — id={} files={} in {} ms", codebase_id, len(files), elapsed)
        return CodebaseResponse(
            id=codebase_id,
            status=CodebaseStatus.COMPLETED,
            files=files,
            structure=structure,
            instructions=instructions,
            estimated_time=elapsed,
        )

    async def fix_critical_issues(
        self,
        files: Sequence[GeneratedFile],
        issues: Sequence[ValidationIssue],
    ) -> list[GeneratedFile]:
        """
        Regenerate files named by ``error`` issues, in issue order.

        Best-effort: an issue whose ``file`` matches no path exactly is
        skipped, and a failed regeneration leaves that file as it was.
        """
        fixed = list(files)
        for issue in issues:
            if issue.severity != Severity.ERROR:
                continue
            index = next((i for i, f in enumerate(fixed) if f.path == issue.file), None)
            if index is None:
                logger.debug("No file matches issue path {!r} — skipped", issue.file)
                continue

            target = fixed[index]
            description = f"Fix the following issue: {issue.message}"
            if issue.line is not None:
                description += f" (line {issue.line})"
            try:
                content = await self.generator.generate_single_file(
                    target.path, description, target.language, []
                )
            except Exception as exc:
                logger.warning("Could not fix {}: {}", target.path, exc)
                continue
            fixed[index] = target.model_copy(update={"content": content})
            logger.info("🩹 Regenerated {}", target.path)
        return fixed

    # -----------------------------------------------------------------------
    # Deployment
    # -----------------------------------------------------------------------

    async def deploy_to_sandbox(self, codebase: CodebaseResponse) -> DeploymentResult:
        logger.info("🚀 Deploying {} to sandbox", codebase.id)
        try:
            files = codebase.files
            workspace = await self.sandbox.create_workspace(
                f"codebase-{codebase.id}", detect_template(files)
            )
            logger.debug("Detected project type {}", detect_project_type(files))
            commands = generate_setup_commands(files, detect_tech_stack(files))
            result = await self.sandbox.deploy_project(workspace.id, files, commands)
        except Exception as exc:
            logger.exception("💥 Deployment failed — id={}", codebase.id)
            return DeploymentResult(
                workspace_url="",
                logs=[f"Error: {str(exc) or type(exc).__name__}"],
                status=DeploymentStatus.ERROR,
            )

        logger.info("✅ Deployed {} → {}", codebase.id, result.workspace_url)
        return result

    # -----------------------------------------------------------------------
    # Optimization
    # -----------------------------------------------------------------------

    async def optimize_codebase(
        self,
        files: Sequence[GeneratedFile],
        kind: OptimizationType,
    ) -> list[GeneratedFile]:
        kind = OptimizationType(kind)
        logger.info("⚙️  Optimizing {} files for {}", len(files), kind.value)
        optimized: list[GeneratedFile] = []
        for f in files:
            if f.category != FileCategory.CODE:
                optimized.append(f)
                continue
            try:
                result = await self.planner.optimize_code(f.path, f.content, f.language, kind)
            except Exception as exc:
                logger.warning("Error optimizing {}: {}", f.path, exc)
                optimized.append(f)
                continue
            optimized.append(f.model_copy(update={"content": result.optimized_content}))
        return optimized


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
