"""
Async client for the tasks REST API.

Only the calls the subtask editor needs: list tasks, fetch one task, and
replace a task's fields with PUT. The backend answers with JSON envelopes
of the form ``{"success": bool, "error": str, ...}``.
"""

from typing import Any, Dict, List, Optional

import httpx

from tasktree.config import Config
from tasktree.logging_config import get_logger
from tasktree.models import Task
from tasktree.services.payload import load_task, load_tasks

logger = get_logger(__name__)


class TaskApiError(Exception):
    """Base exception for tasks API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TaskApiConnectionError(TaskApiError):
    """Raised when the server cannot be reached."""
    pass


class TaskApiClient:
    """
    Thin async wrapper around ``httpx.AsyncClient`` for ``/api/tasks``.

    Failed calls raise; nothing is retried automatically.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Server origin, e.g. "https://intranet.example.com"
            timeout: Request timeout in seconds
            transport: Optional transport override (tests use
                httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> "TaskApiClient":
        """Create a client from the [api] section of the configuration."""
        api = config.get_api_config()
        return cls(api["base_url"], timeout=api["timeout"], **kwargs)

    async def __aenter__(self) -> "TaskApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TaskApiConnectionError(f"Could not reach tasks API: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        failed = isinstance(data, dict) and data.get("success") is False
        if response.is_error or failed:
            message = (data.get("error") if isinstance(data, dict) else None) or "Unknown error"
            logger.warning(f"{method} {path} -> {response.status_code}: {message}")
            raise TaskApiError(message, status_code=response.status_code)

        logger.debug(f"{method} {path} -> {response.status_code}")
        return data

    async def list_tasks(self) -> List[Task]:
        """
        Fetch every task.

        Returns:
            Tasks in server order
        """
        data = await self._request("GET", "/api/tasks")
        return load_tasks(data)

    async def get_task(self, task_id: str) -> Task:
        """
        Fetch one task including its subtask tree.

        Args:
            task_id: Backend document id

        Returns:
            The task
        """
        data = await self._request("GET", f"/api/tasks/{task_id}")
        if isinstance(data, dict) and isinstance(data.get("task"), dict):
            data = data["task"]
        return load_task(data)

    async def update_task(self, task_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace fields of a task. Fields present in ``payload`` overwrite the
        stored values wholesale.

        Args:
            task_id: Backend document id
            payload: JSON body

        Returns:
            Decoded response body
        """
        logger.info(f"Updating task {task_id} ({', '.join(sorted(payload))})")
        data = await self._request("PUT", f"/api/tasks/{task_id}", json=payload)
        return data if isinstance(data, dict) else {}
