"""
Client-side view flags for a subtask tree.

Whether a row is in edit mode or shows its children is presentation state.
It is kept here, keyed by subtask id, and never travels with the subtask
data sent to the server.
"""

from typing import Iterable, Optional, Set

from tasktree.logging_config import get_logger

logger = get_logger(__name__)


class ViewState:
    """
    Editing and expansion flags for the nodes of one open tree.

    Unknown ids read as not editing and not expanded. Nodes without an id
    cannot carry flags.
    """

    def __init__(self) -> None:
        self._editing: Set[str] = set()
        self._expanded: Set[str] = set()

    def is_editing(self, node_id: Optional[str]) -> bool:
        return node_id is not None and node_id in self._editing

    def is_expanded(self, node_id: Optional[str]) -> bool:
        return node_id is not None and node_id in self._expanded

    def toggle_editing(self, node_id: Optional[str]) -> bool:
        """
        Flip the editing flag of one node.

        Args:
            node_id: Id of the node

        Returns:
            The new flag value (False when the node has no id)
        """
        return self._toggle(self._editing, node_id, "editing")

    def toggle_expanded(self, node_id: Optional[str]) -> bool:
        """
        Flip the expansion flag of one node. Children are not affected.

        Args:
            node_id: Id of the node

        Returns:
            The new flag value (False when the node has no id)
        """
        return self._toggle(self._expanded, node_id, "expanded")

    def mark_new(self, node_id: str) -> None:
        """Freshly added nodes open in edit mode and expanded."""
        self._editing.add(node_id)
        self._expanded.add(node_id)

    def forget(self, node_ids: Iterable[str]) -> None:
        """Drop the flags of nodes that left the tree."""
        ids = set(node_ids)
        self._editing -= ids
        self._expanded -= ids

    def reset(self) -> None:
        self._editing.clear()
        self._expanded.clear()

    @staticmethod
    def _toggle(flags: Set[str], node_id: Optional[str], name: str) -> bool:
        if node_id is None:
            logger.debug(f"Cannot toggle {name} on a subtask without an id")
            return False
        if node_id in flags:
            flags.discard(node_id)
            return False
        flags.add(node_id)
        return True
