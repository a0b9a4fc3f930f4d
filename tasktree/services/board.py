"""
Board-level views over many tasks: visibility, list filters and the
metrics shown on the chart view.
"""

from enum import Enum
from typing import Dict, List, Sequence

from pydantic import BaseModel, Field

from tasktree.logging_config import get_logger
from tasktree.models import Task, TaskStatus
from tasktree.policy import VisibilityPolicy
from tasktree.services.tree_mutator import walk
from tasktree.utils.time_utils import parse_time_spent

logger = get_logger(__name__)

UNASSIGNED = "Unassigned"


class FilterKind(str, Enum):
    """Fields a task list can be filtered on."""

    ALL = "all"
    PROJECT = "project"
    ASSIGNEE = "assignee"
    STATUS = "status"
    DATE = "date"    # exact YYYY-MM-DD match on start, due or end date
    MONTH = "month"  # YYYY-MM prefix match on start, due or end date


class TaskFilter(BaseModel):
    """A single list filter; a blank value matches everything."""

    kind: FilterKind = FilterKind.ALL
    value: str = ""

    def matches(self, task: Task) -> bool:
        value = self.value.strip()
        needle = value.lower()
        if self.kind == FilterKind.ALL or not needle:
            return True

        if self.kind == FilterKind.PROJECT:
            return task.project.lower() == needle
        if self.kind == FilterKind.ASSIGNEE:
            return needle == "all" or any(name.lower() == needle for name in task.assignee_names)
        if self.kind == FilterKind.STATUS:
            return task.status.value.lower() == needle

        dates = [d for d in (task.start_date, task.due_date, task.end_date) if d]
        if self.kind == FilterKind.DATE:
            return value in dates
        return any(d.startswith(value) for d in dates)


def visible_tasks(tasks: Sequence[Task], policy: VisibilityPolicy) -> List[Task]:
    """
    Tasks whose department matches one of the policy's departments.

    Args:
        tasks: All tasks
        policy: Visibility rules; no departments means everything is visible

    Returns:
        Matching tasks in input order
    """
    if not policy.departments:
        return list(tasks)
    return [
        task for task in tasks
        if any(dept in (task.department or "").lower() for dept in policy.departments)
    ]


def filter_tasks(tasks: Sequence[Task], task_filter: TaskFilter) -> List[Task]:
    """Apply a list filter, keeping input order."""
    return [task for task in tasks if task_filter.matches(task)]


class GroupStats(BaseModel):
    """Count and rounded average completion of a group of tasks."""

    count: int = 0
    avg_completion: int = 0


class BoardSummary(BaseModel):
    """Metrics shown on the board's chart view."""

    total: int = 0
    completed: int = 0
    in_progress: int = 0
    backlog: int = 0
    avg_completion: int = 0
    completion_rate: int = 0
    by_status: Dict[str, GroupStats] = Field(default_factory=dict)
    by_assignee: Dict[str, GroupStats] = Field(default_factory=dict)
    hours_by_assignee: Dict[str, float] = Field(default_factory=dict)


def _round_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def _group(tasks_by_key: Dict[str, List[int]]) -> Dict[str, GroupStats]:
    return {
        key: GroupStats(count=len(values), avg_completion=_round_half_up(sum(values), len(values)))
        for key, values in tasks_by_key.items()
    }


def summarize_board(tasks: Sequence[Task]) -> BoardSummary:
    """
    Compute board metrics for a list of tasks.

    Averages are rounded half up. Hours by assignee are summed over every
    subtask in every tree, keyed by the subtask's assignee.

    Args:
        tasks: Tasks currently on the board

    Returns:
        BoardSummary
    """
    if not tasks:
        return BoardSummary()

    by_status: Dict[str, List[int]] = {}
    by_assignee: Dict[str, List[int]] = {}
    minutes_by_assignee: Dict[str, int] = {}

    for task in tasks:
        by_status.setdefault(task.status.value, []).append(task.completion)
        for name in task.assignee_names or [UNASSIGNED]:
            by_assignee.setdefault(name, []).append(task.completion)
        for _, node in walk(task.subtasks):
            minutes = parse_time_spent(node.time_spent)
            if minutes:
                name = node.assignee_name or UNASSIGNED
                minutes_by_assignee[name] = minutes_by_assignee.get(name, 0) + minutes

    total = len(tasks)
    completed = _count(tasks, TaskStatus.COMPLETED)

    summary = BoardSummary(
        total=total,
        completed=completed,
        in_progress=_count(tasks, TaskStatus.IN_PROGRESS),
        backlog=_count(tasks, TaskStatus.BACKLOG),
        avg_completion=_round_half_up(sum(t.completion for t in tasks), total),
        completion_rate=_round_half_up(completed * 100, total),
        by_status=_group(by_status),
        by_assignee=_group(by_assignee),
        hours_by_assignee={
            name: round(minutes / 60, 2) for name, minutes in minutes_by_assignee.items()
        },
    )
    logger.debug(f"Board summary: total={summary.total}, completed={summary.completed}")
    return summary


def _count(tasks: Sequence[Task], status: TaskStatus) -> int:
    return sum(1 for task in tasks if task.status == status)
