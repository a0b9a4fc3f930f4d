"""
Explicit user session.

A session is created at login and closed at logout. It owns the API client
and the identity of the signed-in user, and is passed to whatever needs
them instead of being looked up from global state.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tasktree.config import Config
from tasktree.logging_config import get_logger
from tasktree.policy import PolicyConfig
from tasktree.services.editor import SubtaskTreeEditor
from tasktree.services.task_client import TaskApiClient

logger = get_logger(__name__)


class SessionClosedError(Exception):
    """Raised when a session is used after logout."""
    pass


class SessionUser(BaseModel):
    """Identity of the signed-in user, as returned by the login call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    emp_id: str = Field(..., description="Employee id")
    name: str = Field(default="")
    role: str = Field(default="")
    team: str = Field(default="")


class UserSession:
    """
    Live session of one user.

    Usage:
        session = UserSession.login(user, Config())
        editor = await session.open_editor(task_id)
        ...
        await session.logout()
    """

    def __init__(
        self,
        user: SessionUser,
        client: TaskApiClient,
        policies: Optional[PolicyConfig] = None,
    ) -> None:
        self.user = user
        self._client: Optional[TaskApiClient] = client
        self.policies = policies or PolicyConfig()

    @classmethod
    def login(
        cls,
        user: SessionUser,
        config: Optional[Config] = None,
        **client_kwargs: Any,
    ) -> "UserSession":
        """
        Start a session for ``user``.

        Args:
            user: Signed-in user
            config: Application configuration; defaults to Config()
            **client_kwargs: Passed to TaskApiClient (e.g. transport)

        Returns:
            New session with its own API client
        """
        config = config or Config()
        client = TaskApiClient.from_config(config, **client_kwargs)
        policies = PolicyConfig.from_toml_file(config.get_policy_path())
        logger.info(f"Session started for {user.emp_id}")
        return cls(user, client, policies)

    @property
    def is_active(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> TaskApiClient:
        if self._client is None:
            raise SessionClosedError("Session has been logged out")
        return self._client

    async def open_editor(self, task_id: str) -> SubtaskTreeEditor:
        """Fetch a task and open a subtask editor on it with this session's policy."""
        return await SubtaskTreeEditor.open(self.client, task_id, self.policies.editor)

    async def logout(self) -> None:
        """Close the API client and end the session. Safe to call twice."""
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info(f"Session ended for {self.user.emp_id}")

    async def __aenter__(self) -> "UserSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.logout()
