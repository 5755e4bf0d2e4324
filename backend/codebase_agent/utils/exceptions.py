"""Custom exceptions for the Codebase Agent."""

from __future__ import annotations


class CodebaseAgentError(Exception):
    """Base exception for the Codebase Agent."""
    pass


class LLMError(CodebaseAgentError):
    """Code-generation model API errors."""
    pass


class PipeError(CodebaseAgentError):
    """Planning / review pipe API errors."""
    pass


class PlanningError(CodebaseAgentError):
    """Development plan could not be obtained."""
    pass


class ValidationServiceError(CodebaseAgentError):
    """Codebase review call failed."""
    pass


class GenerationError(CodebaseAgentError):
    """Code generation phase errors."""
    pass


class SandboxError(CodebaseAgentError):
    """Remote workspace provider errors."""
    pass


class ResponseParseError(CodebaseAgentError):
    """No JSON object could be recovered from a completion."""

    def __init__(self, raw: str, message: str = "No valid JSON found in response") -> None:
        self.raw = raw
        super().__init__(message)


class ConfigurationError(CodebaseAgentError):
    """Invalid or missing configuration."""
    pass
