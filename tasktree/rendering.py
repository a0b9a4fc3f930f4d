"""Rich rendering of a task's subtask tree."""

from typing import Optional, Sequence

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from tasktree.models import Subtask, SubtaskStatus, Task
from tasktree.services.aggregation import TaskAggregate
from tasktree.services.view_state import ViewState

STATUS_STYLES = {
    SubtaskStatus.PENDING: "yellow",
    SubtaskStatus.IN_PROGRESS: "cyan",
    SubtaskStatus.COMPLETED: "green",
    SubtaskStatus.PAUSED: "magenta",
}


def _node_label(node: Subtask) -> Text:
    label = Text()
    label.append(f"{node.id or '-'} ", style="dim")
    label.append(node.title or "(draft)", style="bold" if node.title else "italic dim")
    label.append(f"  {node.completion}%", style="bold")
    label.append(f"  {node.status.value}", style=STATUS_STYLES[node.status])
    if node.assignee_name:
        label.append(f"  @{node.assignee_name}", style="blue")
    return label


def _add_nodes(branch: Tree, nodes: Sequence[Subtask], view_state: Optional[ViewState]) -> None:
    for node in nodes:
        child = branch.add(_node_label(node))
        # Without a view state everything is shown.
        if view_state is None or view_state.is_expanded(node.id):
            _add_nodes(child, node.subtasks, view_state)
        elif node.subtasks:
            child.add(Text(f"... {len(node.subtasks)} hidden", style="dim"))


def render_tree(task: Task, view_state: Optional[ViewState] = None) -> Tree:
    """
    Build a rich Tree for a task's subtasks.

    Args:
        task: Task to render
        view_state: If given, children of collapsed rows are hidden

    Returns:
        rich Tree renderable
    """
    title = Text()
    title.append(task.project_id or task.id, style="bold")
    if task.project:
        title.append(f"  {task.project}")
    title.append(f"  [{task.status.value}]", style="dim")
    root = Tree(title)
    _add_nodes(root, task.subtasks, view_state)
    return root


def render_aggregate(aggregate: TaskAggregate) -> Table:
    """Build a two-column table of a task's roll-up figures."""
    table = Table(show_header=False, box=None)
    table.add_column(style="dim")
    table.add_column()
    table.add_row("Completion", f"{aggregate.completion}%")
    table.add_row("Subtasks", str(aggregate.node_count))
    for status, count in aggregate.status_counts.items():
        table.add_row(status, str(count))
    table.add_row("Story points", str(aggregate.story_points))
    table.add_row("Time spent", aggregate.time_spent)
    return table
