"""
Subtask tree editor for one open task.

An editor is created when a task's detail view opens. It holds the task's
subtask tree in memory, applies path-addressed edits through
``tree_mutator``, keeps view flags in a ``ViewState``, and writes the whole
tree back with a single PUT on save. The server copy is replaced wholesale;
there is no merge, so the last save wins.
"""

from typing import Any, List, Optional

from tasktree.logging_config import get_logger
from tasktree.models import Subtask, SubtaskStatus, Task, clamp_completion
from tasktree.policy import EditorPolicy
from tasktree.services import tree_mutator
from tasktree.services.aggregation import TaskAggregate, aggregate_task
from tasktree.services.payload import build_save_payload, filter_drafts
from tasktree.services.subtask_ids import SubtaskIdGenerator
from tasktree.services.task_client import TaskApiClient, TaskApiError
from tasktree.services.tree_mutator import Path
from tasktree.services.view_state import ViewState

logger = get_logger(__name__)


class EditorError(Exception):
    """Base exception for subtask editor errors."""
    pass


class NestingLimitError(EditorError):
    """Raised when adding a child would exceed the policy's max depth."""
    pass


class SaveInProgressError(EditorError):
    """Raised when a save is requested while another one is in flight."""
    pass


class NoClientError(EditorError):
    """Raised when a server call is requested on an offline editor."""
    pass


class SubtaskTreeEditor:
    """
    Editing session for one task's subtask tree.

    Attributes:
        task: The task as last loaded or saved
        subtasks: Current, possibly unsaved, subtask tree
        view_state: Editing/expansion flags of the rows
        policy: Editing rules for this view
        dirty: True when local edits have not been saved
        last_error: Message of the last failed server call, for display
    """

    def __init__(
        self,
        task: Task,
        client: Optional[TaskApiClient] = None,
        policy: Optional[EditorPolicy] = None,
    ) -> None:
        """
        Initialize the editor from a loaded task.

        Root subtasks whose ids do not follow the project numbering, and
        nested subtasks without ids, are given ids here.

        Args:
            task: Loaded task
            client: API client used by save(); None for an offline editor
            policy: Editing rules; defaults to EditorPolicy()
        """
        self.task = task
        self.client = client
        self.policy = policy or EditorPolicy()
        self.view_state = ViewState()
        self.id_generator = SubtaskIdGenerator(task.project_id)
        self.subtasks: List[Subtask] = self.id_generator.ensure_ids(task.subtasks)
        self.dirty = False
        self.last_error: Optional[str] = None
        self._saving = False

    @classmethod
    async def open(
        cls,
        client: TaskApiClient,
        task_id: str,
        policy: Optional[EditorPolicy] = None,
    ) -> "SubtaskTreeEditor":
        """
        Fetch a task and open an editor on it.

        Args:
            client: API client
            task_id: Backend document id
            policy: Editing rules

        Returns:
            Editor bound to the fetched task
        """
        task = await client.get_task(task_id)
        logger.info(f"Opened task {task.id} ({len(task.subtasks)} top-level subtasks)")
        return cls(task, client=client, policy=policy)

    @property
    def is_saving(self) -> bool:
        return self._saving

    # ==========================================================================
    # TREE EDITS
    # ==========================================================================

    def _commit(self, new_tree: List[Subtask]) -> bool:
        if new_tree is self.subtasks:
            return False
        self.subtasks = new_tree
        self.dirty = True
        return True

    def get(self, path: Path) -> Optional[Subtask]:
        """Return the node at ``path`` or None."""
        return tree_mutator.get_node(self.subtasks, path)

    def add_root(self) -> str:
        """
        Append a new draft top-level subtask.

        Returns:
            Id of the new subtask
        """
        new_tree, new_id = tree_mutator.add_root(
            self.subtasks, self.task.project_id, self.id_generator
        )
        self._commit(new_tree)
        self.view_state.mark_new(new_id)
        logger.debug(f"Added top-level subtask {new_id}")
        return new_id

    def add_child(self, path: Path) -> Optional[str]:
        """
        Append a new draft child under the node at ``path``.

        Args:
            path: Path of the parent

        Returns:
            Id of the new child, or None if the path does not resolve

        Raises:
            NestingLimitError: If the child would be deeper than allowed
        """
        if path and not self.policy.allows_child_at(len(path) - 1):
            raise NestingLimitError(
                f"Cannot add a subtask below depth {self.policy.max_depth}"
            )

        new_tree, new_id = tree_mutator.add_child(
            self.subtasks, path, self.task.project_id, self.id_generator
        )
        if new_id is None:
            return None
        self._commit(new_tree)
        self.view_state.mark_new(new_id)
        logger.debug(f"Added subtask {new_id} at {list(path)}")
        return new_id

    def remove(self, path: Path) -> bool:
        """
        Remove the node at ``path`` with its subtree.

        Returns:
            True if a node was removed
        """
        node = self.get(path)
        if node is None:
            return False
        self._commit(tree_mutator.remove_node(self.subtasks, path))
        self.view_state.forget(tree_mutator.subtree_ids(node))
        logger.debug(f"Removed subtask {node.id}")
        return True

    def update(self, path: Path, field: str, value: Any) -> bool:
        """
        Set a field of the node at ``path``.

        Completion is clamped to [0, 100] unless the policy disables it.

        Returns:
            True if the tree changed
        """
        if field == "completion" and self.policy.clamp_completion:
            value = clamp_completion(value)
        return self._commit(tree_mutator.update_field(self.subtasks, path, field, value))

    def toggle_edit(self, path: Path) -> Optional[bool]:
        """Flip edit mode of one row. Returns the new flag, or None on a bad path."""
        return tree_mutator.toggle_edit(self.view_state, self.subtasks, path)

    def toggle_expand(self, path: Path) -> Optional[bool]:
        """Flip expansion of one row. Returns the new flag, or None on a bad path."""
        return tree_mutator.toggle_expand(self.view_state, self.subtasks, path)

    # ==========================================================================
    # DERIVED DATA
    # ==========================================================================

    def current_task(self) -> Task:
        """The task with the current local tree."""
        return self.task.model_copy(update={"subtasks": self.subtasks})

    def aggregate(self) -> TaskAggregate:
        """Roll-up of the current local tree."""
        return aggregate_task(self.current_task())

    def payload(self) -> dict:
        """Body that save() would send."""
        return build_save_payload(self.task, self.subtasks)

    # ==========================================================================
    # SERVER CALLS
    # ==========================================================================

    def _require_client(self) -> TaskApiClient:
        if self.client is None:
            raise NoClientError("Editor has no API client")
        return self.client

    async def _put(self, tree: List[Subtask]) -> None:
        """Send ``tree`` as the task's subtask array. One call at a time."""
        client = self._require_client()
        if self._saving:
            raise SaveInProgressError(f"A save for task {self.task.id} is already running")

        self._saving = True
        try:
            await client.update_task(self.task.id, build_save_payload(self.task, tree))
            self.last_error = None
        except TaskApiError as e:
            self.last_error = str(e)
            logger.error(f"Saving task {self.task.id} failed: {e}")
            raise
        finally:
            self._saving = False

    async def save(self) -> Task:
        """
        Send the filtered tree to the server.

        On success draft subtasks are dropped locally too and ``dirty``
        clears. Edits made while the request was in flight were not part of
        it: the local tree is then kept as is and stays dirty. On failure
        the exception propagates and the local tree and view flags stay as
        they were, so the user can retry.

        Returns:
            The saved task

        Raises:
            TaskApiError: If the server call fails
            SaveInProgressError: If another save is running
            NoClientError: If the editor is offline
        """
        sent = self.subtasks
        await self._put(sent)

        saved = filter_drafts(sent)
        self.task = self.task.model_copy(update={"subtasks": saved})

        if self.subtasks is not sent:
            logger.info(f"Saved task {self.task.id}; edits made during the save are still unsaved")
            return self.task

        before = {node.id for _, node in tree_mutator.walk(sent)}
        after = {node.id for _, node in tree_mutator.walk(saved)}
        self.view_state.forget(i for i in before - after if i)

        self.subtasks = saved
        self.dirty = False
        logger.info(f"Saved task {self.task.id}")
        return self.task

    async def set_subtask_status(self, path: Path, status: SubtaskStatus) -> bool:
        """
        Change a subtask's status, confirmed by the server.

        The new tree is sent first and the status is only applied locally
        after the server acknowledges it. Edits made while the request was
        in flight are kept; the status is applied on top of them and the
        tree stays dirty.

        Returns:
            True if the status was changed, False if the path does not resolve

        Raises:
            TaskApiError: If the server call fails; local state is unchanged
            SaveInProgressError: If a save is running
        """
        sent = self.subtasks
        candidate = tree_mutator.update_field(sent, path, "status", status)
        if candidate is sent:
            return False

        await self._put(candidate)

        self.task = self.task.model_copy(update={"subtasks": filter_drafts(candidate)})
        if self.subtasks is sent:
            self.subtasks = candidate
            self.dirty = False
        else:
            self.subtasks = tree_mutator.update_field(self.subtasks, path, "status", status)
        logger.info(f"Subtask at {list(path)} of task {self.task.id} set to {SubtaskStatus(status).value}")
        return True
