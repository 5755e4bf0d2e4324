"""Async client for the planning / review pipe (text-completion endpoint).

A pipe run is a single ``POST /v1/pipes/run`` carrying chat messages and a
bearer credential. The endpoint answers either with a JSON envelope holding a
``completion`` string, or (when it decides to stream) with raw framed text.
Both are returned as plain text; interpreting it is the caller's business.
"""

from __future__ import annotations

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from codebase_agent.config import settings
from codebase_agent.utils.exceptions import PipeError


class PipeClient:
    """Thin async wrapper around the pipe run API."""

    RUN_PATH = "/v1/pipes/run"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.pipe_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.pipe_api_key
        self.timeout = timeout or settings.pipe_timeout
        self.max_retries = max_retries or settings.remote_max_retries
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient``; one per remote call."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            transport=self._transport,
        )

    async def run(self, content: str) -> str:
        """
        Send one user message through the pipe and return the completion text.

        Raises:
            PipeError: Transport failure or non-success status.
        """
        payload = {"messages": [{"role": "user", "content": content}], "stream": False}
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                reraise=True,
            ):
                with attempt:
                    async with self._client() as client:
                        resp = await client.post(self.RUN_PATH, json=payload)
                        resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Pipe API error {}: {}", exc.response.status_code, exc.response.text[:200])
            raise PipeError(f"Pipe API error {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("Pipe request failed: {}", exc)
            raise PipeError(f"Pipe request failed: {exc}") from exc

        if "application/json" in resp.headers.get("content-type", ""):
            try:
                data = resp.json()
            except ValueError:
                return resp.text
            if isinstance(data, dict) and "completion" in data:
                return str(data.get("completion") or "")
        return resp.text
