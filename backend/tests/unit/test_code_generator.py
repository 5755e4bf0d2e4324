"""
Unit tests for CodeGenerator (LLM mocked).
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from codebase_agent.models.codebase import FileCategory, GenerationRequest
from codebase_agent.services.code_generator import CodeGenerator
from codebase_agent.utils.exceptions import GenerationError, LLMError


@pytest.fixture
def llm() -> MagicMock:
    stub = MagicMock()
    stub.generate = AsyncMock()
    return stub


@pytest.fixture
def generator(llm: MagicMock) -> CodeGenerator:
    return CodeGenerator(llm, file_max_tokens=1000)


# ── generate_codebase ─────────────────────────────────────────────────────────

class TestGenerateCodebase:
    async def test_parses_files(
        self, generator: CodeGenerator, llm: MagicMock, todo_request: GenerationRequest
    ) -> None:
        llm.generate.return_value = json.dumps({
            "files": [
                {"path": "package.json", "content": "{}", "language": "json", "category": "config"},
                {"path": "./src/App.jsx", "content": "x", "language": "javascript", "type": "code"},
                {"path": "README.md", "content": "# Todo"},
            ]
        })
        files = await generator.generate_codebase(todo_request)
        assert [f.path for f in files] == ["package.json", "src/App.jsx", "README.md"]
        assert files[2].category == FileCategory.DOCUMENTATION
        assert files[2].language == "markdown"

    async def test_prompt_reflects_flags(
        self, generator: CodeGenerator, llm: MagicMock, todo_request: GenerationRequest
    ) -> None:
        llm.generate.return_value = '{"files": []}'
        await generator.generate_codebase(todo_request)
        prompt = llm.generate.await_args.kwargs["prompt"]
        assert "Project Description: todo app" in prompt
        assert "Include comprehensive test files" in prompt
        assert "Include Docker and deployment configuration files." not in prompt

    async def test_missing_files_array_gives_empty_list(
        self, generator: CodeGenerator, llm: MagicMock, todo_request: GenerationRequest
    ) -> None:
        llm.generate.return_value = '{"summary": "done"}'
        assert await generator.generate_codebase(todo_request) == []

    async def test_malformed_entries_are_dropped(
        self, generator: CodeGenerator, llm: MagicMock, todo_request: GenerationRequest
    ) -> None:
        llm.generate.return_value = json.dumps({"files": ["oops", {"content": "no path"}, {"path": "a.py"}]})
        files = await generator.generate_codebase(todo_request)
        assert [f.path for f in files] == ["a.py"]

    async def test_no_json_raises(
        self, generator: CodeGenerator, llm: MagicMock, todo_request: GenerationRequest
    ) -> None:
        llm.generate.return_value = "Sorry, I can't help with that."
        with pytest.raises(GenerationError, match="Failed to generate codebase"):
            await generator.generate_codebase(todo_request)

    async def test_llm_failure_raises(
        self, generator: CodeGenerator, llm: MagicMock, todo_request: GenerationRequest
    ) -> None:
        llm.generate.side_effect = LLMError("rate limited")
        with pytest.raises(GenerationError):
            await generator.generate_codebase(todo_request)


# ── generate_single_file ──────────────────────────────────────────────────────

class TestGenerateSingleFile:
    async def test_content_envelope(self, generator: CodeGenerator, llm: MagicMock) -> None:
        llm.generate.return_value = json.dumps({"content": "print('fixed')\n"})
        content = await generator.generate_single_file("app.py", "Fix it", "python", [])
        assert content == "print('fixed')\n"
        call = llm.generate.await_args.kwargs
        assert call["max_tokens"] == 1000
        assert "Python" in call["system_prompt"]

    async def test_fenced_code_fallback(self, generator: CodeGenerator, llm: MagicMock) -> None:
        llm.generate.return_value = "Here you go:\n```python\nprint('fixed')\n```\n"
        content = await generator.generate_single_file("app.py", "Fix it", "python", [])
        assert content == "print('fixed')"

    async def test_unknown_language_uses_generic_prompt(self, generator: CodeGenerator, llm: MagicMock) -> None:
        llm.generate.return_value = '{"content": "x"}'
        await generator.generate_single_file("main.go", "Fix it", "go")
        assert "senior engineer" in llm.generate.await_args.kwargs["system_prompt"]

    async def test_llm_failure_raises(self, generator: CodeGenerator, llm: MagicMock) -> None:
        llm.generate.side_effect = LLMError("down")
        with pytest.raises(GenerationError, match="Failed to generate file"):
            await generator.generate_single_file("app.py", "Fix it", "python", [])
