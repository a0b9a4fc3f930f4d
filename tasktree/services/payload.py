"""
Wire format of the tasks API.

Loading applies the model fallbacks so a sparse or slightly
malformed server document still yields a usable Task. Saving filters draft
subtasks and serializes the whole subtask array; the backend replaces the
stored array wholesale.
"""

from typing import Any, Dict, List

from pydantic import ValidationError

from tasktree.logging_config import get_logger
from tasktree.models import Subtask, Task

logger = get_logger(__name__)


class PayloadError(Exception):
    """Raised when a server document cannot be turned into a Task."""
    pass


def load_task(data: Dict[str, Any]) -> Task:
    """
    Build a Task from a server document.

    Missing ``subtasks`` load as an empty list, unknown statuses fall back to
    the first workflow state, and out-of-range completions are clamped.
    Transient flags such as ``isEditing`` in the document are ignored.

    Args:
        data: Task document as returned by the API

    Returns:
        Task instance

    Raises:
        PayloadError: If the document is not a mapping or lacks an ``_id``
    """
    if not isinstance(data, dict):
        raise PayloadError(f"Expected a task object, got {type(data).__name__}")
    try:
        return Task.model_validate(data)
    except ValidationError as e:
        raise PayloadError(f"Invalid task document: {e}") from e


def load_tasks(data: Any) -> List[Task]:
    """
    Build Tasks from a list response.

    Accepts either the API envelope ``{"success": true, "tasks": [...]}`` or
    a bare list. Documents that cannot be loaded are skipped with a warning.

    Args:
        data: Decoded JSON response

    Returns:
        List of tasks in response order
    """
    if isinstance(data, dict):
        items = data.get("tasks") or []
    else:
        items = data or []

    tasks = []
    for item in items:
        try:
            tasks.append(load_task(item))
        except PayloadError as e:
            logger.warning(f"Skipping task document: {e}")
    return tasks


def filter_drafts(tree: List[Subtask]) -> List[Subtask]:
    """
    Drop draft subtasks (empty or whitespace-only title) at every depth.

    A discarded node takes its whole subtree with it, titled children
    included. Children of kept nodes are filtered independently.

    Args:
        tree: Root sequence

    Returns:
        New root sequence; the input is not modified
    """
    kept = []
    for node in tree:
        if node.is_draft:
            logger.debug(f"Discarding draft subtask {node.id}")
            continue
        children = filter_drafts(node.subtasks)
        unchanged = len(children) == len(node.subtasks) and all(
            new is old for new, old in zip(children, node.subtasks)
        )
        if not unchanged:
            node = node.model_copy(update={"subtasks": children})
        kept.append(node)
    return kept


def dump_subtasks(tree: List[Subtask]) -> List[Dict[str, Any]]:
    """Serialize a subtask tree to JSON-ready dicts with camelCase keys."""
    return [node.model_dump(mode="json", by_alias=True) for node in tree]


def build_save_payload(task: Task, subtasks: List[Subtask]) -> Dict[str, Any]:
    """
    Build the body of ``PUT /api/tasks/{id}`` for a subtask save.

    Args:
        task: Task being edited
        subtasks: Current (unfiltered) subtask tree

    Returns:
        JSON-ready dict with ``projectId`` and the filtered ``subtasks``
    """
    filtered = filter_drafts(subtasks)
    return {
        "projectId": task.project_id,
        "subtasks": dump_subtasks(filtered),
    }
