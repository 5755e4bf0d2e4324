"""Request schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from codebase_agent.models.codebase import (
    CamelModel,
    CodebaseResponse,
    CodebaseStatus,
    Complexity,
    GeneratedFile,
    GenerationRequest,
    OptimizationType,
    ProjectType,
    TechStack,
    new_codebase_id,
)


class GenerateRequestBody(CamelModel):
    """Raw ``POST /generate`` body; required fields are checked by the route."""

    prompt: str | None = None
    project_type: ProjectType | None = None
    tech_stack: list[TechStack] | None = None
    features: list[str] | None = None
    complexity: Complexity | None = None
    include_tests: bool | None = None
    include_documentation: bool | None = None
    include_deployment: bool | None = None

    def missing_required(self) -> bool:
        return not (self.prompt and self.prompt.strip()) or not self.project_type or not self.tech_stack

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            prompt=self.prompt,
            project_type=self.project_type,
            tech_stack=self.tech_stack,
            features=self.features or [],
            complexity=self.complexity or Complexity.MEDIUM,
            include_tests=True if self.include_tests is None else self.include_tests,
            include_documentation=True if self.include_documentation is None else self.include_documentation,
            include_deployment=False if self.include_deployment is None else self.include_deployment,
        )


class CodebasePayload(CamelModel):
    """
    A previously generated codebase posted back for deployment.

    Only ``files`` is required to be non-empty, and the route checks that.
    Status rules of :class:`CodebaseResponse` are not applied on input.
    """

    id: str = Field(default_factory=new_codebase_id)
    status: CodebaseStatus = CodebaseStatus.COMPLETED
    files: list[GeneratedFile] = Field(default_factory=list)
    structure: str = ""
    instructions: str = ""
    estimated_time: int = 0
    created_at: datetime | None = None

    def to_codebase_response(self) -> CodebaseResponse:
        """Deployable view of the payload; requires at least one file."""
        return CodebaseResponse(
            id=self.id,
            status=CodebaseStatus.COMPLETED,
            files=self.files,
            structure=self.structure,
            instructions=self.instructions,
            estimated_time=self.estimated_time,
            **({"created_at": self.created_at} if self.created_at else {}),
        )


class DeployRequest(CamelModel):
    codebase_response: CodebasePayload | None = None


class OptimizeRequest(CamelModel):
    files: list[GeneratedFile] = Field(default_factory=list)
    optimization_type: OptimizationType | None = None
