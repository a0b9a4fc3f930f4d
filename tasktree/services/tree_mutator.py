"""
Path-addressed editing of subtask trees.

A path is a sequence of child indices leading from the root sequence of a
tree down to one node: ``[1, 0]`` is the first child of the second
top-level subtask.

Every operation returns a new root sequence and leaves its input alone.
Lists and nodes along the path are copied; siblings off the path keep
their identity. A path that does not resolve (index out of range at any
level, negative index, empty path where a node is required) makes the
operation a no-op: the original tree object is returned.
"""

from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple

from pydantic.alias_generators import to_camel

from tasktree.logging_config import get_logger
from tasktree.models import Subtask, SubtaskStatus
from tasktree.services.subtask_ids import SubtaskIdGenerator
from tasktree.services.view_state import ViewState

logger = get_logger(__name__)

Path = Sequence[int]

EDITABLE_FIELDS = frozenset({
    "title",
    "assignee_name",
    "status",
    "completion",
    "remarks",
    "story_points",
    "time_spent",
    "date",
})

_WIRE_TO_FIELD = {to_camel(name): name for name in EDITABLE_FIELDS}

# Fields that are never None on a node
_TEXT_FIELDS = frozenset({"title", "assignee_name", "remarks"})


def _to_int(field: str, value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"Invalid {field} value: {value!r}") from None


def _resolves(siblings: Sequence[Subtask], index: Any) -> bool:
    return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < len(siblings)


def walk(tree: Sequence[Subtask], _prefix: Tuple[int, ...] = ()) -> Iterator[Tuple[Tuple[int, ...], Subtask]]:
    """
    Iterate over every node of a tree, depth first, parents before children.

    Yields:
        (path, node) pairs
    """
    for index, node in enumerate(tree):
        path = _prefix + (index,)
        yield path, node
        yield from walk(node.subtasks, path)


def get_node(tree: Sequence[Subtask], path: Path) -> Optional[Subtask]:
    """
    Resolve a path to a node.

    Returns:
        The addressed node, or None if the path does not resolve
    """
    if not path:
        return None

    node = None
    level: Sequence[Subtask] = tree
    for index in path:
        if not _resolves(level, index):
            return None
        node = level[index]
        level = node.subtasks
    return node


def _apply_at(
    tree: List[Subtask],
    path: Path,
    apply: Callable[[List[Subtask], int], None],
) -> List[Subtask]:
    """
    Copy the tree along ``path`` and run ``apply`` on the copied sibling list
    that holds the addressed node.

    Returns:
        The new root sequence, or ``tree`` itself when the path misses
    """
    if not path or not _resolves(tree, path[0]):
        logger.debug(f"Path {list(path)} does not resolve; tree unchanged")
        return tree

    index = path[0]
    if len(path) == 1:
        level = list(tree)
        apply(level, index)
        return level

    node = tree[index]
    children = _apply_at(node.subtasks, path[1:], apply)
    if children is node.subtasks:
        return tree

    level = list(tree)
    level[index] = node.model_copy(update={"subtasks": children})
    return level


def _coerce(field: str, value: Any) -> Any:
    if field == "completion":
        # Range is not enforced here; callers clamp.
        return _to_int(field, value)
    if field == "story_points":
        return _to_int(field, value or 0)
    if field == "status":
        return SubtaskStatus(value)
    if field in _TEXT_FIELDS:
        return "" if value is None else str(value)
    return value


def update_field(tree: List[Subtask], path: Path, field: str, value: Any) -> List[Subtask]:
    """
    Set one editable field on the addressed node.

    Args:
        tree: Root sequence
        path: Path of the node to update
        field: Field name, snake_case or camelCase wire name
        value: New value; ``completion`` is coerced to int, ``status`` to
            SubtaskStatus

    Returns:
        New root sequence

    Raises:
        ValueError: If the field is not editable or the value cannot be
            coerced
    """
    name = _WIRE_TO_FIELD.get(field, field)
    if name not in EDITABLE_FIELDS:
        raise ValueError(f"Subtask field {field!r} is not editable")

    new_value = _coerce(name, value)

    def apply(siblings: List[Subtask], index: int) -> None:
        siblings[index] = siblings[index].model_copy(update={name: new_value})

    return _apply_at(tree, path, apply)


def remove_node(tree: List[Subtask], path: Path) -> List[Subtask]:
    """
    Delete the addressed node (and its subtree) from its parent's children.

    Returns:
        New root sequence
    """
    def apply(siblings: List[Subtask], index: int) -> None:
        del siblings[index]

    return _apply_at(tree, path, apply)


def add_child(
    tree: List[Subtask],
    path: Path,
    project_prefix: str,
    id_generator: Optional[SubtaskIdGenerator] = None,
) -> Tuple[List[Subtask], Optional[str]]:
    """
    Append a new draft child to the addressed node.

    Args:
        tree: Root sequence
        path: Path of the parent node
        project_prefix: Project id of the owning task
        id_generator: Session generator; a fresh one is used if omitted

    Returns:
        (new root sequence, id of the new child); the id is None when the
        path does not resolve
    """
    generator = id_generator or SubtaskIdGenerator(project_prefix)
    created: List[str] = []

    def apply(siblings: List[Subtask], index: int) -> None:
        parent = siblings[index]
        new_id = generator.next_child_id(parent)
        created.append(new_id)
        siblings[index] = parent.model_copy(
            update={"subtasks": [*parent.subtasks, Subtask(id=new_id)]}
        )

    new_tree = _apply_at(tree, path, apply)
    return new_tree, (created[0] if created else None)


def add_root(
    tree: List[Subtask],
    project_prefix: str,
    id_generator: Optional[SubtaskIdGenerator] = None,
) -> Tuple[List[Subtask], str]:
    """
    Append a new draft top-level subtask.

    Returns:
        (new root sequence, id of the new subtask)
    """
    generator = id_generator or SubtaskIdGenerator(project_prefix)
    new_id = generator.next_root_id(tree)
    return [*tree, Subtask(id=new_id)], new_id


def toggle_edit(view_state: ViewState, tree: Sequence[Subtask], path: Path) -> Optional[bool]:
    """
    Flip the editing flag of the addressed node only.

    Returns:
        The new flag value, or None when the path does not resolve
    """
    node = get_node(tree, path)
    if node is None:
        logger.debug(f"toggle_edit: path {list(path)} does not resolve")
        return None
    return view_state.toggle_editing(node.id)


def toggle_expand(view_state: ViewState, tree: Sequence[Subtask], path: Path) -> Optional[bool]:
    """
    Flip the expansion flag of the addressed node only.

    Returns:
        The new flag value, or None when the path does not resolve
    """
    node = get_node(tree, path)
    if node is None:
        logger.debug(f"toggle_expand: path {list(path)} does not resolve")
        return None
    return view_state.toggle_expanded(node.id)


def subtree_ids(node: Subtask) -> Iterator[str]:
    """Yield the ids of a node and all of its descendants."""
    if node.id:
        yield node.id
    for _, child in walk(node.subtasks):
        if child.id:
            yield child.id
