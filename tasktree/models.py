"""
Pydantic models for tasktree.

Defines the task document returned by the tasks API and the recursive
subtask node it owns. Field names are snake_case in Python and camelCase
on the wire.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tasktree.logging_config import get_logger

logger = get_logger(__name__)


class SubtaskStatus(str, Enum):
    """Workflow state of a single subtask node."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    PAUSED = "Paused"


class TaskStatus(str, Enum):
    """Workflow state of a task on the board."""

    BACKLOG = "Backlog"
    IN_PROGRESS = "In Progress"
    DEV_REVIEW = "Dev Review"
    DEPLOYED_IN_QA = "Deployed in QA"
    TEST_IN_PROGRESS = "Test In Progress"
    QA_SIGN_OFF = "QA Sign Off"
    DEPLOYMENT_STAGE = "Deployment Stage"
    PILOT_TEST = "Pilot Test"
    COMPLETED = "Completed"
    PAUSED = "Paused"


MIN_COMPLETION = 0
MAX_COMPLETION = 100


def clamp_completion(value: Any) -> int:
    """
    Coerce a completion value to an integer within [0, 100].

    Args:
        value: Raw completion (int, float, numeric string or None)

    Returns:
        Clamped integer completion; unparseable values become 0
    """
    if value is None or value == "":
        return MIN_COMPLETION
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        logger.warning(f"Unparseable completion value {value!r}, using 0")
        return MIN_COMPLETION
    return max(MIN_COMPLETION, min(MAX_COMPLETION, number))


class Subtask(BaseModel):
    """
    A node in a task's subtask tree.

    A node with an empty ``subtasks`` list is a leaf. A node whose title is
    empty is a draft and is discarded on save. Editing and expansion flags
    are not part of the model; see ``tasktree.services.view_state``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "PRJ-001-002",
                "title": "Write migration",
                "assigneeName": "Asha",
                "status": "In Progress",
                "completion": 40,
                "remarks": "",
                "storyPoints": 3,
                "timeSpent": "2h 30m",
                "subtasks": [],
            }
        },
    )

    id: Optional[str] = Field(default=None, description="Hierarchical identifier, e.g. PRJ-001-002.1")
    title: str = Field(default="", description="Free text title; empty marks a draft")
    assignee_name: str = Field(default="", description="Display name of the assignee")
    status: SubtaskStatus = Field(default=SubtaskStatus.PENDING)
    completion: int = Field(default=0, description="Completion percentage 0-100")
    remarks: str = Field(default="")
    story_points: int = Field(default=0, ge=0)
    time_spent: Optional[str] = Field(default=None, description="Free form effort, e.g. '2h 30m'")
    date: Optional[str] = Field(default=None)
    subtasks: List["Subtask"] = Field(default_factory=list, description="Ordered child nodes")

    @field_validator("title", "assignee_name", "remarks", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("completion", mode="before")
    @classmethod
    def _clamp_completion(cls, v: Any) -> int:
        return clamp_completion(v)

    @field_validator("story_points", mode="before")
    @classmethod
    def _coerce_story_points(cls, v: Any) -> int:
        try:
            return max(0, int(float(v or 0)))
        except (TypeError, ValueError):
            return 0

    @field_validator("status", mode="before")
    @classmethod
    def _fallback_status(cls, v: Any) -> Any:
        if v is None or v == "":
            return SubtaskStatus.PENDING
        if isinstance(v, SubtaskStatus):
            return v
        try:
            return SubtaskStatus(v)
        except ValueError:
            logger.warning(f"Unknown subtask status {v!r}, loading as Pending")
            return SubtaskStatus.PENDING

    @field_validator("subtasks", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def is_leaf(self) -> bool:
        """True when the node has no children."""
        return not self.subtasks

    @property
    def is_draft(self) -> bool:
        """True when the node has no title yet."""
        return not self.title.strip()


class Task(BaseModel):
    """
    A project task as stored by the backend, owning a subtask tree.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = Field(..., alias="_id", description="Backend document id")
    project_id: str = Field(default="", description="Project key, used as the subtask id prefix")
    project: str = Field(default="", description="Project display name")
    assignee_names: List[str] = Field(default_factory=list)
    start_date: str = Field(default="")
    due_date: str = Field(default="")
    end_date: Optional[str] = Field(default=None)
    completion: int = Field(default=0)
    status: TaskStatus = Field(default=TaskStatus.BACKLOG)
    remarks: Optional[str] = Field(default=None)
    department: Optional[str] = Field(default=None)
    task_story_points: int = Field(default=0)
    task_time_spent: Optional[str] = Field(default=None)
    subtasks: List[Subtask] = Field(default_factory=list)

    @field_validator("project_id", "project", "start_date", "due_date", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("assignee_names", "subtasks", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("completion", mode="before")
    @classmethod
    def _clamp_completion(cls, v: Any) -> int:
        return clamp_completion(v)

    @field_validator("task_story_points", mode="before")
    @classmethod
    def _coerce_story_points(cls, v: Any) -> int:
        try:
            return max(0, int(float(v or 0)))
        except (TypeError, ValueError):
            return 0

    @field_validator("status", mode="before")
    @classmethod
    def _fallback_status(cls, v: Any) -> Any:
        if v is None or v == "":
            return TaskStatus.BACKLOG
        if isinstance(v, TaskStatus):
            return v
        try:
            return TaskStatus(v)
        except ValueError:
            logger.warning(f"Unknown task status {v!r}, loading as Backlog")
            return TaskStatus.BACKLOG


# Enable forward references for nested Subtask
Subtask.model_rebuild()
