"""
Code Generator – turns a generation request into a flat set of files.

- Whole-codebase generation returns ``{"files": [...]}`` JSON
- Single-file regeneration with per-language system prompts
- JSON recovered with the shared tolerant extractor
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from codebase_agent.config import settings
from codebase_agent.models.codebase import GeneratedFile, GenerationRequest
from codebase_agent.services.llm_service import LLMService
from codebase_agent.utils.exceptions import GenerationError, LLMError, ResponseParseError
from codebase_agent.utils.file_kinds import infer_language
from codebase_agent.utils.json_extract import extract_json_object, strip_fences


# ---------------------------------------------------------------------------
# System prompts per language / file-type
# ---------------------------------------------------------------------------

def _python_system_prompt() -> str:
    return """\
You are a principal Python engineer. Generate production-quality Python code.

Standards:
- Python 3.11+ syntax
- Type hints on public function signatures
- Comprehensive error handling; never swallow exceptions silently
- Follow PEP 8\
"""


def _typescript_system_prompt() -> str:
    return """\
You are a principal TypeScript / React engineer. Generate production-quality code.

Standards:
- Strict TypeScript — no `any`; use `unknown` + type guards instead
- React functional components with explicit prop interfaces
- `async`/`await`; no `.then()` chains
- Named exports preferred; default export only for page/route components\
"""


def _javascript_system_prompt() -> str:
    return """\
You are a principal JavaScript/React engineer. Generate production-quality code.

Standards:
- ES2022+ syntax (optional chaining, nullish coalescing)
- Functional React components; use hooks
- `async`/`await` for all async operations
- Named exports preferred\
"""


def _sql_system_prompt() -> str:
    return """\
You are a database engineer. Generate clean, well-commented SQL.

Standards:
- Use standard ANSI SQL where possible; note dialect-specific syntax
- Include IF NOT EXISTS guards for DDL
- Add indexes for foreign keys and common query columns\
"""


def _shell_system_prompt() -> str:
    return """\
You are a DevOps engineer. Generate safe, portable shell scripts.

Standards:
- `#!/usr/bin/env bash` shebang
- `set -euo pipefail` at the top
- Quote all variables: "$VAR"\
"""


def _generic_system_prompt() -> str:
    return """\
You are a senior engineer. Generate clean, well-documented code following the
conventions of the file's language.\
"""


LANGUAGE_PROMPTS: dict[str, Any] = {
    "python": _python_system_prompt,
    "typescript": _typescript_system_prompt,
    "javascript": _javascript_system_prompt,
    "sql": _sql_system_prompt,
    "shell": _shell_system_prompt,
}

_SINGLE_FILE_FORMAT = (
    'Return a JSON object {"content": "<complete file content>"} and nothing else.'
)


class CodeGenerator:
    """Whole-codebase and single-file generation on the code model."""

    def __init__(self, llm_service: LLMService, file_max_tokens: int | None = None) -> None:
        self.llm = llm_service
        self.file_max_tokens = file_max_tokens or settings.codegen_file_max_tokens

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    async def generate_codebase(self, request: GenerationRequest) -> list[GeneratedFile]:
        """
        Generate every file of the project.

        A completion without a ``files`` array yields an empty list.

        Raises:
            GenerationError: Model unreachable, or no JSON object recoverable.
        """
        logger.info("🛠  Generating {} codebase", request.project_type.value)
        try:
            raw = await self.llm.generate(prompt=self._build_codebase_prompt(request))
            parsed = extract_json_object(raw).value
        except (LLMError, ResponseParseError) as exc:
            raise GenerationError(f"Failed to generate codebase: {exc}") from exc

        files = self._coerce_files(parsed.get("files"))
        logger.info("🛠  Generated {} files", len(files))
        return files

    async def generate_single_file(
        self,
        path: str,
        description: str,
        language: str,
        dependencies: list[str] | None = None,
    ) -> str:
        """
        Generate the full content of one file.

        Raises:
            GenerationError: Model unreachable.
        """
        language = language or infer_language(path)
        prompt = "\n".join([
            f"Generate a {language} file for: {path}",
            "",
            f"Description: {description}",
            f"Dependencies: {', '.join(dependencies or [])}",
            "",
            "Requirements:",
            "- Write production-ready, well-documented code",
            f"- Follow best practices for {language}",
            "- Include proper error handling",
            "- Add comments for complex logic",
            "- Ensure code is secure and performant",
            "",
            _SINGLE_FILE_FORMAT,
        ])
        system_prompt = LANGUAGE_PROMPTS.get(language, _generic_system_prompt)()

        try:
            raw = await self.llm.generate(
                prompt=prompt,
                system_prompt=system_prompt,
                max_tokens=self.file_max_tokens,
            )
        except LLMError as exc:
            raise GenerationError(f"Failed to generate file: {exc}") from exc

        try:
            content = extract_json_object(raw).value.get("content")
        except ResponseParseError:
            content = None
        if isinstance(content, str) and content:
            return content
        # Model ignored the envelope; take the code itself
        return strip_fences(raw)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _build_codebase_prompt(self, request: GenerationRequest) -> str:
        extras = []
        if request.include_tests:
            extras.append("Include comprehensive test files for all major components.")
        if request.include_documentation:
            extras.append("Include README.md and API documentation.")
        if request.include_deployment:
            extras.append("Include Docker and deployment configuration files.")

        return "\n".join([
            f"Generate a complete {request.project_type.value} codebase based on the following requirements:",
            "",
            f"Project Description: {request.prompt}",
            f"Project Type: {request.project_type.value}",
            f"Tech Stack: {', '.join(t.value for t in request.tech_stack)}",
            f"Features: {', '.join(request.features)}",
            f"Complexity Level: {request.complexity.value}",
            f"Include Tests: {str(request.include_tests).lower()}",
            f"Include Documentation: {str(request.include_documentation).lower()}",
            f"Include Deployment: {str(request.include_deployment).lower()}",
            "",
            "Return a JSON object with this exact format:",
            "{",
            '  "files": [',
            "    {",
            '      "path": "relative/path/to/file.ext",',
            '      "content": "complete file content here",',
            '      "language": "javascript|typescript|python|etc",',
            '      "category": "code|config|documentation|test"',
            "    }",
            "  ]",
            "}",
            "",
            "Requirements:",
            "1. Create a complete project structure with all necessary files",
            "2. Include package.json/requirements.txt with all dependencies",
            "3. Add proper configuration files (tsconfig.json, .env.example, etc.)",
            "4. Write production-ready code with error handling",
            "5. Follow best practices for the chosen tech stack",
            "6. Ensure all files work together as a cohesive project",
            "7. Use forward-slash paths relative to the project root",
            "",
            *extras,
            "",
            "Respond with ONLY the JSON object — no markdown fences, no prose.",
        ])

    def _coerce_files(self, raw_files: Any) -> list[GeneratedFile]:
        files: list[GeneratedFile] = []
        if not isinstance(raw_files, list):
            return files
        for item in raw_files:
            if not isinstance(item, dict):
                continue
            path = str(item.get("path") or "").strip().removeprefix("./").lstrip("/")
            item = {**item, "path": path}
            try:
                files.append(GeneratedFile.model_validate(item))
            except ValidationError:
                logger.warning("Dropping malformed generated file {!r:.80}", item.get("path"))
        return files
