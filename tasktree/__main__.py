"""Entry point for tasktree.

Inspect exported task documents from the command line:
    python -m tasktree show task.json
    python -m tasktree summary tasks.json --department tech
    python -m tasktree payload task.json

Or as an installed command:
    tasktree show task.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from tasktree.logging_config import setup_logging, get_logger

# Initialize logger for this module
logger = get_logger(__name__)


def _read_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tasktree", description="Inspect task subtask trees")
    parser.add_argument("--log-level", default=None, help="Override TASKTREE_LOG_LEVEL")
    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Print a task's subtask tree and its roll-up")
    show.add_argument("file", help="JSON file holding one task document")

    summary = commands.add_parser("summary", help="Print board metrics for a list of tasks")
    summary.add_argument("file", help="JSON file holding a task list or {'tasks': [...]}")
    summary.add_argument("--department", action="append", default=[],
                         help="Only count tasks of this department (repeatable)")
    summary.add_argument("--filter", default="all",
                         help="List filter as kind=value, e.g. status=Completed")

    payload = commands.add_parser("payload", help="Print the save payload for a task")
    payload.add_argument("file", help="JSON file holding one task document")
    return parser


def _show(file: str, console: Console) -> None:
    from tasktree.rendering import render_aggregate, render_tree
    from tasktree.services.aggregation import aggregate_task
    from tasktree.services.payload import load_task

    task = load_task(_read_json(file))
    console.print(render_tree(task))
    console.print(render_aggregate(aggregate_task(task)))


def _summary(file: str, departments: list, filter_spec: str, console: Console) -> None:
    from tasktree.policy import VisibilityPolicy
    from tasktree.services.board import TaskFilter, filter_tasks, summarize_board, visible_tasks
    from tasktree.services.payload import load_tasks

    kind, _, value = filter_spec.partition("=")
    task_filter = TaskFilter(kind=kind or "all", value=value)

    tasks = load_tasks(_read_json(file))
    tasks = visible_tasks(tasks, VisibilityPolicy(departments=departments))
    tasks = filter_tasks(tasks, task_filter)
    console.print_json(summarize_board(tasks).model_dump_json())


def _payload(file: str, console: Console) -> None:
    from tasktree.services.payload import build_save_payload, load_task

    task = load_task(_read_json(file))
    console.print_json(json.dumps(build_save_payload(task, task.subtasks)))


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point for tasktree.

    Args:
        args: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]

    options = _build_parser().parse_args(args)

    # Initialize logging before any other operations
    setup_logging(log_level=options.log_level)

    console = Console()
    try:
        if options.command == "show":
            _show(options.file, console)
        elif options.command == "summary":
            _summary(options.file, options.department, options.filter, console)
        else:
            _payload(options.file, console)
        return 0
    except KeyboardInterrupt:
        logger.info("tasktree interrupted by user (Ctrl+C)")
        return 0
    except Exception as e:
        logger.error("Error running tasktree", exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
