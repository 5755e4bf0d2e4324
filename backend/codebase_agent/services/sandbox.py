"""Async client for the remote sandbox workspace provider.

Wraps the workspace REST API (``/workspaces``, ``/workspaces/{id}/files``,
``/workspaces/{id}/execute``, ``/workspaces/{id}/logs``) with bearer
authentication. Every remote call opens and closes its own ``AsyncClient``;
nothing is pooled across calls.

Uploads and command execution are strictly sequential so that the deployment
log reads in the order things happened.

Typical usage::

    sandbox = SandboxService()
    ws = await sandbox.create_workspace("codebase-123", "react")
    result = await sandbox.deploy_project(ws.id, files, ["npm install"])
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from codebase_agent.config import settings
from codebase_agent.models.codebase import (
    DeploymentResult,
    DeploymentStatus,
    GeneratedFile,
    Workspace,
)
from codebase_agent.utils.exceptions import SandboxError

ADVISORY_PREFIX = "#"


class SandboxService:
    """Client for remote workspaces: lifecycle, file upload, command execution."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        command_timeout_ms: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.sandbox_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.sandbox_api_key
        self.timeout = timeout or settings.sandbox_timeout
        self.command_timeout_ms = command_timeout_ms or settings.sandbox_command_timeout_ms
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and credential."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout or self.timeout, connect=10.0),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        async with self._client(timeout) as client:
            resp = await client.request(method, path, json=json)
            resp.raise_for_status()
            if not resp.content:
                return None
            return resp.json()

    @staticmethod
    def _describe(exc: Exception) -> str:
        if isinstance(exc, httpx.HTTPStatusError):
            return f"HTTP {exc.response.status_code} from {exc.request.url.path}"
        return str(exc) or type(exc).__name__

    @staticmethod
    def _to_workspace(data: Any) -> Workspace:
        if not isinstance(data, dict):
            raise SandboxError(f"Unexpected workspace payload: {data!r:.120}")
        try:
            return Workspace.model_validate(data)
        except ValidationError as exc:
            raise SandboxError(f"Malformed workspace payload: {exc}") from exc

    # ------------------------------------------------------------------
    # Workspace lifecycle
    # ------------------------------------------------------------------

    async def create_workspace(self, name: str, template: str | None = None) -> Workspace:
        """Create a workspace from ``template`` (``blank`` when omitted)."""
        payload = {
            "name": name,
            "template": template or "blank",
            "config": {
                "resources": {
                    "cpu": settings.sandbox_cpu,
                    "memory": settings.sandbox_memory,
                    "storage": settings.sandbox_storage,
                },
                "environment": {
                    "NODE_VERSION": settings.sandbox_node_version,
                    "PYTHON_VERSION": settings.sandbox_python_version,
                },
            },
        }
        logger.info("🧪 Creating workspace {} (template={})", name, payload["template"])
        try:
            data = await self._request("POST", "/workspaces", json=payload)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error creating workspace: {}", exc)
            raise SandboxError(f"Failed to create workspace: {self._describe(exc)}") from exc
        return self._to_workspace(data)

    async def get_workspace(self, workspace_id: str) -> Workspace:
        try:
            data = await self._request("GET", f"/workspaces/{workspace_id}")
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error getting workspace {}: {}", workspace_id, exc)
            raise SandboxError(f"Failed to get workspace: {self._describe(exc)}") from exc
        return self._to_workspace(data)

    async def list_workspaces(self) -> list[Workspace]:
        try:
            data = await self._request("GET", "/workspaces")
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error listing workspaces: {}", exc)
            raise SandboxError(f"Failed to list workspaces: {self._describe(exc)}") from exc
        if isinstance(data, dict):
            data = data.get("workspaces", [])
        return [self._to_workspace(item) for item in data or []]

    async def delete_workspace(self, workspace_id: str) -> None:
        try:
            await self._request("DELETE", f"/workspaces/{workspace_id}")
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error deleting workspace {}: {}", workspace_id, exc)
            raise SandboxError(f"Failed to delete workspace: {self._describe(exc)}") from exc
        logger.info("🗑  Workspace {} deleted", workspace_id)

    async def get_workspace_logs(self, workspace_id: str) -> list[str]:
        """Workspace logs; a single diagnostic line instead of raising."""
        try:
            data = await self._request("GET", f"/workspaces/{workspace_id}/logs")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Error getting workspace logs for {}: {}", workspace_id, exc)
            return [f"Error fetching logs: {self._describe(exc)}"]
        logs = data.get("logs") if isinstance(data, dict) else None
        return [str(line) for line in logs or []]

    # ------------------------------------------------------------------
    # Deployment
    # ------------------------------------------------------------------

    async def upload_files(self, workspace_id: str, files: Sequence[GeneratedFile]) -> None:
        """
        Upload files one at a time, in order.

        Raises:
            SandboxError: On the first failed upload; later files are not sent.
        """
        for f in files:
            try:
                await self._request(
                    "POST",
                    f"/workspaces/{workspace_id}/files",
                    json={"path": f.path, "content": f.content, "encoding": "utf8"},
                )
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("Error uploading {} to {}: {}", f.path, workspace_id, exc)
                raise SandboxError(
                    f"Failed to upload files: {f.path}: {self._describe(exc)}"
                ) from exc
        logger.info("📤 Uploaded {} files to {}", len(files), workspace_id)

    async def execute_setup_commands(self, workspace_id: str, commands: Sequence[str]) -> list[str]:
        """
        Run commands one after another and return the log.

        Never raises: non-zero exits and failed calls become log lines and the
        next command still runs. Advisory ``#`` lines are logged, not executed.
        """
        logs: list[str] = []
        # Transport timeout slightly above the remote execution bound
        timeout = self.command_timeout_ms / 1000 + 30

        for command in commands:
            if command.lstrip().startswith(ADVISORY_PREFIX):
                logs.append(f"Note: {command.lstrip().lstrip(ADVISORY_PREFIX).strip()}")
                continue

            logs.append(f"Command: {command}")
            try:
                data = await self._request(
                    "POST",
                    f"/workspaces/{workspace_id}/execute",
                    json={"command": command, "timeout": self.command_timeout_ms},
                    timeout=timeout,
                )
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Command {!r} could not be executed: {}", command, exc)
                logs.append(f"Error: {self._describe(exc)}")
                continue

            data = data if isinstance(data, dict) else {}
            logs.append(f"Output: {data.get('output', '')}")
            exit_code = data.get("exitCode")
            if exit_code != 0:
                logger.warning("Command {!r} exited with {}", command, exit_code)
                logs.append(f"Error: Command failed with exit code {exit_code}")

        return logs

    async def deploy_project(
        self,
        workspace_id: str,
        files: Sequence[GeneratedFile],
        setup_commands: Sequence[str],
    ) -> DeploymentResult:
        """
        Upload → execute → re-fetch, as one call.

        Raises:
            SandboxError: Upload or re-fetch failed. Nothing is rolled back.
        """
        try:
            await self.upload_files(workspace_id, files)
            logs = await self.execute_setup_commands(workspace_id, setup_commands)
            workspace = await self.get_workspace(workspace_id)
        except SandboxError as exc:
            raise SandboxError(f"Failed to deploy project: {exc}") from exc

        return DeploymentResult(
            workspace_url=workspace.url,
            logs=logs,
            status=DeploymentStatus.SUCCESS,
        )
