"""
LLM Service – Anthropic Claude API integration for code generation.

- AsyncAnthropic client
- Retry with exponential back-off via tenacity (rate limits / connection
  errors only)
- Every other failure is wrapped in LLMError
"""

from __future__ import annotations

from typing import Any

import anthropic
from anthropic import AsyncAnthropic
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from codebase_agent.config import settings
from codebase_agent.utils.exceptions import LLMError

_TRANSIENT = (anthropic.RateLimitError, anthropic.APIConnectionError)


class LLMService:
    """Managed interface to the code-generation model."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        max_retries: int | None = None,
    ) -> None:
        self.client = AsyncAnthropic(
            api_key=api_key if api_key is not None else settings.anthropic_api_key,
            max_retries=0,
        )
        self.model = model or settings.codegen_model
        self.max_tokens = max_tokens or settings.codegen_max_tokens
        self.temperature = temperature if temperature is not None else settings.codegen_temperature
        self.max_retries = max_retries or settings.remote_max_retries

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> str:
        """
        Generate a text completion.

        Raises:
            LLMError: Any API failure, or an empty completion.
        """
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": temperature if temperature is not None else self.temperature,
            "messages": [{"role": "user", "content": prompt}],
            **kwargs,
        }
        if system_prompt:
            params["system"] = system_prompt

        try:
            logger.debug("LLM request — {} chars, model={}", len(prompt), self.model)
            response = await self._create(params)
        except anthropic.APIStatusError as exc:
            logger.error("Anthropic API error {}: {}", exc.status_code, exc.message)
            raise LLMError(f"Anthropic API error {exc.status_code}: {exc.message}") from exc
        except Exception as exc:
            logger.exception("LLM generate failed")
            raise LLMError(f"LLM generation failed: {exc}") from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        if not text:
            raise LLMError("No content received from the code generation model")
        logger.debug(
            "LLM response — {} chars, tokens in={} out={}",
            len(text),
            response.usage.input_tokens,
            response.usage.output_tokens,
        )
        return text

    async def _create(self, params: dict[str, Any]) -> Any:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(_TRANSIENT),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        ):
            with attempt:
                return await self.client.messages.create(**params)
        raise LLMError("LLM generation failed: retries exhausted")
