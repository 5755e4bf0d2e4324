"""
Unit tests for PlanReviewService (pipe mocked).
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from codebase_agent.models.codebase import GenerationRequest, OptimizationType, Severity
from codebase_agent.services.plan_review import PlanReviewService
from codebase_agent.utils.exceptions import PipeError, PlanningError, ValidationServiceError


@pytest.fixture
def pipe() -> MagicMock:
    stub = MagicMock()
    stub.run = AsyncMock()
    return stub


@pytest.fixture
def service(pipe: MagicMock) -> PlanReviewService:
    return PlanReviewService(pipe)


# ── orchestrate_code_generation ───────────────────────────────────────────────

class TestPlanning:
    async def test_parses_plan(
        self, service: PlanReviewService, pipe: MagicMock, todo_request: GenerationRequest
    ) -> None:
        pipe.run.return_value = json.dumps({
            "plan": "Build a todo app",
            "steps": [
                {"step": 1, "description": "Scaffold", "files": ["package.json"], "dependencies": []},
                {"step": 2, "description": "Auth", "files": ["src/auth.js"], "dependencies": ["1"]},
            ],
        })
        plan = await service.orchestrate_code_generation(todo_request)
        assert plan.plan == "Build a todo app"
        assert [s.step for s in plan.steps] == [1, 2]
        assert plan.steps[1].dependencies == ["1"]
        assert plan.is_fallback is False

    async def test_prompt_carries_request(
        self, service: PlanReviewService, pipe: MagicMock, todo_request: GenerationRequest
    ) -> None:
        pipe.run.return_value = '{"plan": "x"}'
        await service.orchestrate_code_generation(todo_request)
        prompt = pipe.run.await_args.args[0]
        assert "- Project: todo app" in prompt
        assert "- Tech Stack: react" in prompt
        assert "- Features: auth" in prompt

    async def test_unparseable_completion_gives_default_plan(
        self, service: PlanReviewService, pipe: MagicMock, todo_request: GenerationRequest
    ) -> None:
        pipe.run.return_value = "I'd be happy to help you plan this!"
        plan = await service.orchestrate_code_generation(todo_request)
        assert plan.is_fallback is True
        assert [s.step for s in plan.steps] == [1, 2]
        assert plan.steps[1].dependencies == ["1"]
        assert "todo app" in plan.plan

    async def test_transport_failure_raises(
        self, service: PlanReviewService, pipe: MagicMock, todo_request: GenerationRequest
    ) -> None:
        pipe.run.side_effect = PipeError("Pipe API error 503")
        with pytest.raises(PlanningError, match="Failed to create development plan"):
            await service.orchestrate_code_generation(todo_request)


# ── validate_codebase ─────────────────────────────────────────────────────────

class TestValidation:
    async def test_sse_framed_report(self, service: PlanReviewService, pipe: MagicMock) -> None:
        body = {
            "isValid": False,
            "issues": [
                {"file": "src/App.jsx", "line": 3, "severity": "error", "message": "Syntax error"},
                {"file": "src/App.jsx", "severity": "warning", "message": "Unused import"},
                {"severity": "error", "message": "no file"},
            ],
            "suggestions": ["Add tests"],
        }
        pipe.run.return_value = f"data: {json.dumps(body)}\n\n"
        report = await service.validate_codebase(
            [{"path": "src/App.jsx", "content": "x", "language": "javascript"}]
        )
        assert report.is_valid is False
        assert len(report.issues) == 2
        assert report.errors[0].line == 3
        assert report.suggestions == ["Add tests"]

    async def test_string_is_valid_flag_is_not_true(self, service: PlanReviewService, pipe: MagicMock) -> None:
        pipe.run.return_value = '{"isValid": "false", "issues": [], "suggestions": []}'
        report = await service.validate_codebase([])
        assert report.is_valid is False

    async def test_unparseable_completion_gives_failed_report(
        self, service: PlanReviewService, pipe: MagicMock
    ) -> None:
        pipe.run.return_value = "Looks good to me!"
        report = await service.validate_codebase([])
        assert report.is_valid is False
        assert len(report.issues) == 1
        issue = report.issues[0]
        assert issue.file == "validation"
        assert issue.severity == Severity.ERROR
        assert issue.message == "Failed to validate codebase"

    async def test_prompt_samples_five_files_truncated(
        self, service: PlanReviewService, pipe: MagicMock
    ) -> None:
        pipe.run.return_value = '{"isValid": true, "issues": [], "suggestions": []}'
        files = [
            {"path": f"src/f{i}.js", "content": "a" * 1500 + "TAIL", "language": "javascript"}
            for i in range(7)
        ]
        await service.validate_codebase(files)
        prompt = pipe.run.await_args.args[0]
        assert "src/f6.js (javascript)" in prompt
        assert "File: src/f4.js" in prompt
        assert "File: src/f5.js" not in prompt
        assert "TAIL" not in prompt

    async def test_transport_failure_raises(self, service: PlanReviewService, pipe: MagicMock) -> None:
        pipe.run.side_effect = PipeError("down")
        with pytest.raises(ValidationServiceError):
            await service.validate_codebase([])


# ── optimize_code ─────────────────────────────────────────────────────────────

class TestOptimization:
    async def test_returns_optimized_content(self, service: PlanReviewService, pipe: MagicMock) -> None:
        pipe.run.return_value = json.dumps({
            "optimizedContent": "const x = 1;",
            "changes": [{"line": 1, "original": "var x = 1;", "optimized": "const x = 1;", "reason": "const"}],
        })
        result = await service.optimize_code("a.js", "var x = 1;", "javascript", OptimizationType.READABILITY)
        assert result.optimized_content == "const x = 1;"
        assert result.changes[0].reason == "const"
        assert "Better naming" in pipe.run.await_args.args[0]

    async def test_unparseable_keeps_original(self, service: PlanReviewService, pipe: MagicMock) -> None:
        pipe.run.return_value = "```js\nconst x = 1;\n```"
        result = await service.optimize_code("a.js", "var x = 1;", "javascript", "performance")
        assert result.optimized_content == "var x = 1;"
        assert result.changes == []

    async def test_empty_optimized_content_keeps_original(
        self, service: PlanReviewService, pipe: MagicMock
    ) -> None:
        pipe.run.return_value = '{"optimizedContent": "", "changes": []}'
        result = await service.optimize_code("a.js", "var x = 1;", "javascript", "security")
        assert result.optimized_content == "var x = 1;"
