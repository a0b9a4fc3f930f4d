"""
Subtask identifier generation.

Root subtasks are numbered per project: ``{prefix}-{NNN}`` where NNN is one
more than the highest numeric suffix already in use, zero-padded to three
digits. Nested subtasks append a dotted ordinal to their parent's id:
``{parentId}.{n}``.

A generator remembers the highest number it has issued for each parent, so
removing the last subtask and adding a new one never hands out the removed
id again during the same editing session.
"""

import re
from typing import Dict, Iterable, List, Optional, Set

from tasktree.logging_config import get_logger
from tasktree.models import Subtask

logger = get_logger(__name__)

ROOT_ID_WIDTH = 3

_LEADING_DIGITS = re.compile(r"\d+")

# Key under which root-level issue counts are tracked
_ROOT_KEY = ""


def root_suffix(subtask_id: Optional[str], prefix: str) -> int:
    """
    Extract the numeric suffix of a root-level subtask id.

    Args:
        subtask_id: Id to inspect, e.g. "PRJ-001-004"
        prefix: Project prefix, e.g. "PRJ-001"

    Returns:
        The number after the last dash (4 in the example), or 0 if the id
        is missing, belongs to another prefix, or has no numeric suffix
    """
    if not subtask_id or not subtask_id.startswith(f"{prefix}-"):
        return 0
    last_segment = subtask_id.rsplit("-", 1)[-1]
    match = _LEADING_DIGITS.match(last_segment)
    return int(match.group()) if match else 0


def child_suffix(subtask_id: Optional[str], parent_id: str) -> int:
    """
    Extract the ordinal of a nested subtask id relative to its parent.

    Args:
        subtask_id: Child id, e.g. "PRJ-001-002.3"
        parent_id: Parent id, e.g. "PRJ-001-002"

    Returns:
        The ordinal (3 in the example), or 0 if the id does not extend the
        parent id with a numeric component
    """
    if not subtask_id or not subtask_id.startswith(f"{parent_id}."):
        return 0
    remainder = subtask_id[len(parent_id) + 1:]
    return int(remainder) if remainder.isdigit() else 0


def format_root_id(prefix: str, number: int) -> str:
    """Build a root-level id such as ``PRJ-001-007``."""
    return f"{prefix}-{number:0{ROOT_ID_WIDTH}d}"


def format_child_id(parent_id: str, ordinal: int) -> str:
    """Build a nested id such as ``PRJ-001-007.2``."""
    return f"{parent_id}.{ordinal}"


class SubtaskIdGenerator:
    """
    Issues subtask ids for one task's tree.

    Attributes:
        project_prefix: The owning task's project id, used for root ids and
            as the base for children of a node that has no id
    """

    def __init__(self, project_prefix: str) -> None:
        self.project_prefix = project_prefix
        self._issued: Dict[str, int] = {}

    def _next(self, key: str, in_use: Iterable[int]) -> int:
        highest = max(in_use, default=0)
        number = max(highest, self._issued.get(key, 0)) + 1
        self._issued[key] = number
        return number

    def next_root_id(self, roots: List[Subtask]) -> str:
        """
        Issue the id for a new top-level subtask.

        Args:
            roots: Current root sequence of the tree

        Returns:
            New id of the form ``{prefix}-{NNN}``
        """
        number = self._next(
            _ROOT_KEY,
            (root_suffix(node.id, self.project_prefix) for node in roots),
        )
        new_id = format_root_id(self.project_prefix, number)
        logger.debug(f"Issued root subtask id {new_id}")
        return new_id

    def next_child_id(self, parent: Subtask) -> str:
        """
        Issue the id for a new child of ``parent``.

        Args:
            parent: Node that will receive the child

        Returns:
            New id of the form ``{parentId}.{n}``
        """
        base = parent.id or self.project_prefix
        number = self._next(
            base,
            (child_suffix(child.id, base) for child in parent.subtasks),
        )
        new_id = format_child_id(base, number)
        logger.debug(f"Issued nested subtask id {new_id}")
        return new_id

    def ensure_ids(self, tree: List[Subtask]) -> List[Subtask]:
        """
        Give every node of a loaded tree a unique id that fits the scheme.

        Root nodes whose id is missing, belongs to another prefix, or was
        already used by an earlier root get a fresh root id. Nested nodes
        without an id, or repeating an id seen earlier in the tree, get a
        fresh dotted id under their parent. Nodes that already fit are
        returned as-is.

        Args:
            tree: Root sequence as loaded from the server

        Returns:
            New root sequence (input is not modified)
        """
        roots = list(tree)
        seen: Set[str] = set()
        # Nodes outside the scheme contribute suffix 0, so numbering
        # continues after the highest id that already fits.
        for index, node in enumerate(roots):
            if node.id and node.id.startswith(f"{self.project_prefix}-") and node.id not in seen:
                seen.add(node.id)
                continue
            new_id = self.next_root_id(roots)
            logger.info(f"Assigned id {new_id} to subtask {node.title!r} (was {node.id!r})")
            roots[index] = node.model_copy(update={"id": new_id})
            seen.add(new_id)

        return [self._ensure_child_ids(node, seen) for node in roots]

    def _ensure_child_ids(self, node: Subtask, seen: Set[str]) -> Subtask:
        if not node.subtasks:
            return node

        children = list(node.subtasks)
        for index, child in enumerate(children):
            if child.id and child.id not in seen:
                seen.add(child.id)
                continue
            parent_view = node.model_copy(update={"subtasks": children})
            new_id = self.next_child_id(parent_view)
            if child.id:
                logger.info(f"Duplicate subtask id {child.id!r} replaced by {new_id}")
            children[index] = child.model_copy(update={"id": new_id})
            seen.add(new_id)

        children = [self._ensure_child_ids(child, seen) for child in children]
        if all(new is old for new, old in zip(children, node.subtasks)):
            return node
        return node.model_copy(update={"subtasks": children})


def next_root_id(prefix: str, roots: List[Subtask]) -> str:
    """Stateless form of :meth:`SubtaskIdGenerator.next_root_id`."""
    return SubtaskIdGenerator(prefix).next_root_id(roots)


def ensure_ids(tree: List[Subtask], prefix: str) -> List[Subtask]:
    """Stateless form of :meth:`SubtaskIdGenerator.ensure_ids`."""
    return SubtaskIdGenerator(prefix).ensure_ids(tree)
