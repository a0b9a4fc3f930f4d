"""
Pytest configuration and fixtures for tasktree tests.

Provides sample task documents, subtask trees, and a mock tasks API built on
httpx.MockTransport.
"""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from tasktree.models import Subtask, Task
from tasktree.services.task_client import TaskApiClient


@pytest.fixture
def sample_task_data() -> Dict[str, Any]:
    """
    Task document as the API returns it.

    Tree:
        PRJ-001-001  A   50
        PRJ-001-002  B  100
            PRJ-001-002.1  B1  0
    """
    return {
        "_id": "64f0c0ffee",
        "projectId": "PRJ-001",
        "project": "Payroll",
        "assigneeNames": ["Asha", "Ravi"],
        "startDate": "2025-03-01",
        "dueDate": "2025-03-31",
        "completion": 10,
        "status": "In Progress",
        "department": "Tech",
        "taskStoryPoints": 2,
        "taskTimeSpent": "1h",
        "subtasks": [
            {"id": "PRJ-001-001", "title": "A", "assigneeName": "Asha", "status": "In Progress",
             "completion": 50, "remarks": "", "storyPoints": 3, "timeSpent": "2h 30m"},
            {"id": "PRJ-001-002", "title": "B", "assigneeName": "Ravi", "status": "Completed",
             "completion": 100, "remarks": "done", "storyPoints": 5, "timeSpent": "45m",
             "subtasks": [
                 {"id": "PRJ-001-002.1", "title": "B1", "assigneeName": "", "status": "Pending",
                  "completion": 0, "remarks": ""},
             ]},
        ],
    }


@pytest.fixture
def sample_task(sample_task_data) -> Task:
    """Loaded Task for ``sample_task_data``."""
    return Task.model_validate(sample_task_data)


@pytest.fixture
def sample_tree(sample_task) -> List[Subtask]:
    """Subtask tree of ``sample_task``."""
    return sample_task.subtasks


@pytest.fixture
def deep_tree() -> List[Subtask]:
    """
    Three-level tree used for structural checks.

    [0] R1
        [0,0] R1.1
        [0,1] R1.2
            [0,1,0] R1.2.1
    [1] R2
    """
    return [
        Subtask(id="P-001", title="R1", subtasks=[
            Subtask(id="P-001.1", title="R1.1", completion=10),
            Subtask(id="P-001.2", title="R1.2", completion=20, subtasks=[
                Subtask(id="P-001.2.1", title="R1.2.1", completion=30),
            ]),
        ]),
        Subtask(id="P-002", title="R2", completion=40),
    ]


class FakeTasksApi:
    """
    In-memory stand-in for the tasks API.

    Records every request and stores PUT bodies so tests can reload what
    was saved.
    """

    def __init__(self, tasks: List[Dict[str, Any]]) -> None:
        self.tasks = {task["_id"]: dict(task) for task in tasks}
        self.requests: List[httpx.Request] = []
        self.fail_next: int = 0
        self.fail_status: int = 500
        self.offline = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)
        if self.fail_next:
            self.fail_next -= 1
            return httpx.Response(self.fail_status, json={"success": False, "error": "Database unavailable"})

        path = request.url.path
        if request.method == "GET" and path == "/api/tasks":
            return httpx.Response(200, json={"success": True, "tasks": list(self.tasks.values())})

        task_id = path.rsplit("/", 1)[-1]
        if task_id not in self.tasks:
            return httpx.Response(404, json={"success": False, "error": "Task not found"})

        if request.method == "GET":
            return httpx.Response(200, json={"success": True, "task": self.tasks[task_id]})
        if request.method == "PUT":
            body = json.loads(request.content)
            self.tasks[task_id].update(body)
            return httpx.Response(200, json={"success": True, "task": self.tasks[task_id]})
        return httpx.Response(405, json={"success": False, "error": "Method not allowed"})

    @property
    def put_bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.method == "PUT"]


@pytest.fixture
def fake_api(sample_task_data) -> FakeTasksApi:
    """Fake API seeded with the sample task."""
    return FakeTasksApi([sample_task_data])


@pytest.fixture
def make_client(fake_api) -> Callable[[], TaskApiClient]:
    """Factory for clients wired to ``fake_api``."""
    def factory() -> TaskApiClient:
        return TaskApiClient("http://tasks.test", transport=httpx.MockTransport(fake_api.handler))
    return factory
