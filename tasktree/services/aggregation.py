"""
Roll-up of a task's subtask tree into progress and effort figures.

Used by board and list views for progress bars and by the command line
summary.
"""

from typing import Dict

from pydantic import BaseModel, Field

from tasktree.logging_config import get_logger
from tasktree.models import SubtaskStatus, Task
from tasktree.services.tree_mutator import walk
from tasktree.utils.time_utils import format_minutes, parse_time_spent

logger = get_logger(__name__)


class TaskAggregate(BaseModel):
    """
    Aggregated view of one task.

    ``completion`` is the floor of the mean completion over every node in
    the tree, or the task's own completion when it has no subtasks. It is
    not bounded: an editor that does not clamp completion can hold values
    outside [0, 100], and the roll-up reports what the tree holds.
    """

    task_id: str
    completion: int
    node_count: int = 0
    status_counts: Dict[str, int] = Field(default_factory=dict)
    story_points: int = 0
    time_spent_minutes: int = 0

    @property
    def time_spent(self) -> str:
        """Total effort formatted like "2h 30m"."""
        return format_minutes(self.time_spent_minutes)


def empty_status_counts() -> Dict[str, int]:
    """Counts for every subtask status, all zero."""
    return {status.value: 0 for status in SubtaskStatus}


def aggregate_task(task: Task) -> TaskAggregate:
    """
    Compute roll-up statistics for a task.

    Every node of the tree is visited exactly once; the result does not
    depend on traversal order.

    Args:
        task: Task with a possibly multi-level subtask tree

    Returns:
        TaskAggregate for the task
    """
    status_counts = empty_status_counts()
    story_points = task.task_story_points
    minutes = parse_time_spent(task.task_time_spent)
    completion_sum = 0
    node_count = 0

    for _, node in walk(task.subtasks):
        node_count += 1
        completion_sum += node.completion
        status_counts[node.status.value] += 1
        story_points += node.story_points
        minutes += parse_time_spent(node.time_spent)

    if node_count == 0:
        completion = task.completion
    else:
        completion = completion_sum // node_count

    logger.debug(
        f"Aggregated task {task.id}: nodes={node_count}, completion={completion}, "
        f"story_points={story_points}, minutes={minutes}"
    )

    return TaskAggregate(
        task_id=task.id,
        completion=completion,
        node_count=node_count,
        status_counts=status_counts,
        story_points=story_points,
        time_spent_minutes=minutes,
    )
