"""
Plan / Review Service – development planning, codebase validation and
single-file optimization through the planning pipe.

Every call embeds the structured inputs into an instruction document, runs it
through the pipe and recovers a JSON object from the completion with
``extract_json_object``. Unparseable completions never raise here; each
operation has its own fallback:

- planning      → a fixed two-step default plan
- validation    → a conservative "validation failed" report
- optimization  → the original content, unchanged

Transport failures are wrapped and re-raised.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger
from pydantic import ValidationError

from codebase_agent.models.codebase import (
    CodeChange,
    DevelopmentPlan,
    GenerationRequest,
    OptimizationResult,
    OptimizationType,
    PlanStep,
    Severity,
    ValidationIssue,
    ValidationReport,
)
from codebase_agent.services.pipe_client import PipeClient
from codebase_agent.utils.exceptions import (
    PipeError,
    PlanningError,
    ResponseParseError,
    ValidationServiceError,
)
from codebase_agent.utils.json_extract import extract_json_object

# Validation prompt embeds at most this many files, each truncated
_SAMPLE_FILES = 5
_SAMPLE_CHARS = 1000

_OPTIMIZATION_FOCUS: dict[OptimizationType, list[str]] = {
    OptimizationType.PERFORMANCE: ["Performance improvements", "Memory optimization", "Algorithm efficiency"],
    OptimizationType.READABILITY: ["Code clarity", "Better naming", "Improved structure"],
    OptimizationType.SECURITY: ["Security vulnerabilities", "Input validation", "Safe practices"],
    OptimizationType.ALL: ["Performance, readability, and security improvements"],
}

PLAN_SCHEMA = """\
{
  "plan": "Overall development strategy and approach",
  "steps": [
    {
      "step": 1,
      "description": "Step description",
      "files": ["list of files to create in this step"],
      "dependencies": ["required dependencies or previous steps"]
    }
  ]
}"""

VALIDATION_SCHEMA = """\
{
  "isValid": boolean,
  "issues": [
    {
      "file": "filename",
      "line": number (optional),
      "severity": "error|warning|info",
      "message": "description of issue"
    }
  ],
  "suggestions": ["list of improvement suggestions"]
}"""


class PlanReviewService:
    """Planning, validation and optimization over the pipe."""

    def __init__(self, pipe: PipeClient) -> None:
        self.pipe = pipe

    # -----------------------------------------------------------------------
    # Planning
    # -----------------------------------------------------------------------

    async def orchestrate_code_generation(self, request: GenerationRequest) -> DevelopmentPlan:
        """
        Produce a development plan for ``request``.

        Raises:
            PlanningError: The pipe could not be reached.
        """
        logger.info("🧠 Planning {} project: {:.80}", request.project_type.value, request.prompt)
        try:
            raw = await self.pipe.run(self._build_plan_prompt(request))
        except PipeError as exc:
            raise PlanningError(f"Failed to create development plan: {exc}") from exc

        try:
            extracted = extract_json_object(raw)
        except ResponseParseError:
            logger.warning("⚠️  Plan completion was not JSON — using default plan")
            return self._fallback_plan(request)

        plan = self._coerce_plan(extracted.value)
        logger.info("✅ Plan ready — {} steps (parsed via {})", len(plan.steps), extracted.strategy.value)
        return plan

    def _build_plan_prompt(self, request: GenerationRequest) -> str:
        parts = [
            f"Create a detailed development plan for generating a {request.project_type.value} codebase.",
            "",
            "Requirements:",
            f"- Project: {request.prompt}",
            f"- Type: {request.project_type.value}",
            f"- Tech Stack: {', '.join(t.value for t in request.tech_stack)}",
            f"- Features: {', '.join(request.features)}",
            f"- Complexity: {request.complexity.value}",
            f"- Include Tests: {str(request.include_tests).lower()}",
            f"- Include Documentation: {str(request.include_documentation).lower()}",
            f"- Include Deployment: {str(request.include_deployment).lower()}",
            "",
            "Return a JSON object with:",
            PLAN_SCHEMA,
            "",
            "Break down the development into logical steps, considering dependencies and best practices.",
            "Respond with ONLY the JSON object — no markdown fences, no prose.",
        ]
        return "\n".join(parts)

    def _coerce_plan(self, raw: Mapping[str, Any]) -> DevelopmentPlan:
        steps: list[PlanStep] = []
        raw_steps = raw.get("steps")
        for i, s in enumerate(raw_steps if isinstance(raw_steps, list) else [], 1):
            if not isinstance(s, dict):
                continue
            try:
                steps.append(PlanStep(
                    step=int(s.get("step", i)),
                    description=str(s.get("description", "")),
                    files=[str(f) for f in s.get("files") or [] if f],
                    dependencies=[str(d) for d in s.get("dependencies") or [] if d],
                ))
            except (TypeError, ValueError, ValidationError):
                logger.debug("Skipping malformed plan step {}", i)
        plan_text = raw.get("plan")
        return DevelopmentPlan(
            plan=str(plan_text) if plan_text else "Generated development plan",
            steps=steps,
        )

    def _fallback_plan(self, request: GenerationRequest) -> DevelopmentPlan:
        stack = ", ".join(t.value for t in request.tech_stack)
        return DevelopmentPlan(
            plan=f"Default plan: build a {request.project_type.value} using {stack} — {request.prompt}",
            steps=[
                PlanStep(
                    step=1,
                    description="Set up the project structure, manifests and configuration",
                    files=[],
                    dependencies=[],
                ),
                PlanStep(
                    step=2,
                    description="Implement the core features"
                    + (f": {', '.join(request.features)}" if request.features else ""),
                    files=[],
                    dependencies=["1"],
                ),
            ],
            is_fallback=True,
        )

    # -----------------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------------

    async def validate_codebase(self, files: Sequence[Mapping[str, str]]) -> ValidationReport:
        """
        Review ``{path, content, language}`` projections of a file set.

        Raises:
            ValidationServiceError: The pipe could not be reached.
        """
        logger.info("🔬 Validating {} files", len(files))
        try:
            raw = await self.pipe.run(self._build_validation_prompt(files))
        except PipeError as exc:
            raise ValidationServiceError(f"Failed to validate codebase: {exc}") from exc

        try:
            extracted = extract_json_object(raw)
        except ResponseParseError:
            logger.warning("⚠️  Validation completion was not JSON — reporting failure")
            return self._failed_report()

        report = self._coerce_report(extracted.value)
        logger.info(
            "{} Validation — {} issues ({} errors)",
            "✅" if report.is_valid else "❌",
            len(report.issues),
            len(report.errors),
        )
        return report

    def _build_validation_prompt(self, files: Sequence[Mapping[str, str]]) -> str:
        file_list = "\n".join(f"{f.get('path', '')} ({f.get('language', '')})" for f in files)
        snippets = "\n\n".join(
            f"File: {f.get('path', '')}\n```{f.get('language', '')}\n"
            f"{(f.get('content') or '')[:_SAMPLE_CHARS]}...\n```"
            for f in files[:_SAMPLE_FILES]
        )
        return (
            "Validate the following codebase for quality, security, and best practices:\n\n"
            f"Files in codebase:\n{file_list}\n\n"
            f"Sample code (first {_SAMPLE_FILES} files):\n{snippets}\n\n"
            f"Return a JSON object with:\n{VALIDATION_SCHEMA}\n\n"
            "Check for:\n"
            "- Code quality and best practices\n"
            "- Security vulnerabilities\n"
            "- Performance issues\n"
            "- Missing error handling\n"
            "- Incomplete implementations\n\n"
            "Use the exact file paths listed above in the \"file\" field."
        )

    def _coerce_report(self, raw: Mapping[str, Any]) -> ValidationReport:
        issues: list[ValidationIssue] = []
        raw_issues = raw.get("issues")
        for item in raw_issues if isinstance(raw_issues, list) else []:
            if not isinstance(item, dict) or not item.get("file"):
                continue
            try:
                issues.append(ValidationIssue.model_validate(item))
            except ValidationError:
                logger.debug("Skipping malformed issue {!r:.120}", item)
        raw_suggestions = raw.get("suggestions")
        suggestions = [
            str(s) for s in (raw_suggestions if isinstance(raw_suggestions, list) else []) if s
        ]
        return ValidationReport(
            is_valid=raw.get("isValid") is True,
            issues=issues,
            suggestions=suggestions,
        )

    @staticmethod
    def _failed_report() -> ValidationReport:
        return ValidationReport(
            is_valid=False,
            issues=[ValidationIssue(
                file="validation",
                severity=Severity.ERROR,
                message="Failed to validate codebase",
            )],
            suggestions=[],
        )

    # -----------------------------------------------------------------------
    # Optimization
    # -----------------------------------------------------------------------

    async def optimize_code(
        self,
        path: str,
        content: str,
        language: str,
        kind: OptimizationType,
    ) -> OptimizationResult:
        """
        Rewrite a single file for ``kind``.

        Returns the original content when the completion holds no JSON.

        Raises:
            ValidationServiceError: The pipe could not be reached.
        """
        kind = OptimizationType(kind)
        try:
            raw = await self.pipe.run(self._build_optimization_prompt(path, content, language, kind))
        except PipeError as exc:
            raise ValidationServiceError(f"Failed to optimize {path}: {exc}") from exc

        try:
            parsed = extract_json_object(raw).value
        except ResponseParseError:
            logger.warning("⚠️  Optimization of {} returned no JSON — keeping original", path)
            return OptimizationResult(optimized_content=content, changes=[])

        optimized = parsed.get("optimizedContent")
        changes: list[CodeChange] = []
        raw_changes = parsed.get("changes")
        for item in raw_changes if isinstance(raw_changes, list) else []:
            if not isinstance(item, dict):
                continue
            try:
                changes.append(CodeChange.model_validate(item))
            except ValidationError:
                continue
        return OptimizationResult(
            optimized_content=optimized if isinstance(optimized, str) and optimized else content,
            changes=changes,
        )

    def _build_optimization_prompt(
        self, path: str, content: str, language: str, kind: OptimizationType
    ) -> str:
        focus = "\n".join(f"- {item}" for item in _OPTIMIZATION_FOCUS[kind])
        return (
            f"Optimize the following {language} code for {kind.value}:\n\n"
            f"File: {path}\n\n"
            f"Code:\n```{language}\n{content}\n```\n\n"
            "Return a JSON object with:\n"
            "- optimizedContent: the improved code\n"
            "- changes: array of specific changes made with explanations "
            "({line, original, optimized, reason})\n\n"
            f"Focus on:\n{focus}"
        )
