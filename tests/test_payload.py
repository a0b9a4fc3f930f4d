"""
Tests for loading task documents and building save payloads.
"""

import pytest

from tasktree.models import Subtask, Task
from tasktree.services.payload import (
    PayloadError,
    build_save_payload,
    dump_subtasks,
    filter_drafts,
    load_task,
    load_tasks,
)
from tasktree.services.tree_mutator import walk


class TestLoad:
    """Tests for load_task / load_tasks."""

    def test_load_task(self, sample_task_data):
        task = load_task(sample_task_data)
        assert isinstance(task, Task)
        assert task.subtasks[0].title == "A"

    def test_load_task_without_subtasks(self):
        task = load_task({"_id": "t1", "projectId": "PRJ-002"})
        assert task.subtasks == []

    def test_load_task_rejects_non_mapping(self):
        with pytest.raises(PayloadError):
            load_task(["not", "a", "task"])

    def test_load_task_rejects_missing_id(self):
        with pytest.raises(PayloadError):
            load_task({"projectId": "PRJ-002"})

    def test_load_tasks_envelope(self, sample_task_data):
        tasks = load_tasks({"success": True, "tasks": [sample_task_data]})
        assert [t.id for t in tasks] == ["64f0c0ffee"]

    def test_load_tasks_bare_list_skips_bad_items(self, sample_task_data):
        tasks = load_tasks([sample_task_data, {"projectId": "no id"}, "junk"])
        assert len(tasks) == 1

    def test_load_tasks_missing_field(self):
        assert load_tasks({"success": True}) == []


class TestFilterDrafts:
    """Tests for save-time draft filtering."""

    def test_empty_titled_root_discards_children(self):
        """A draft parent takes its titled child with it."""
        tree = [Subtask(id="P-001", title="", subtasks=[Subtask(id="P-001.1", title="Valid")])]
        assert filter_drafts(tree) == []

    def test_whitespace_title_is_draft(self):
        tree = [Subtask(title="  \t"), Subtask(title="Keep")]
        assert [n.title for n in filter_drafts(tree)] == ["Keep"]

    def test_kept_node_children_filtered_independently(self):
        tree = [Subtask(id="P-001", title="Parent", subtasks=[
            Subtask(id="P-001.1", title=""),
            Subtask(id="P-001.2", title="Child", subtasks=[Subtask(id="P-001.2.1", title=" ")]),
        ])]

        filtered = filter_drafts(tree)

        assert [c.id for c in filtered[0].subtasks] == ["P-001.2"]
        assert filtered[0].subtasks[0].subtasks == []

    def test_deep_draft_removed_even_when_sibling_count_unchanged(self):
        tree = [Subtask(title="A", subtasks=[Subtask(title="B", subtasks=[Subtask(title="")])])]

        filtered = filter_drafts(tree)

        assert filtered[0].subtasks[0].subtasks == []

    def test_input_untouched(self):
        tree = [Subtask(title="A", subtasks=[Subtask(title="")])]
        filter_drafts(tree)
        assert len(tree[0].subtasks) == 1

    def test_clean_tree_keeps_identity(self, sample_tree):
        filtered = filter_drafts(sample_tree)
        assert all(new is old for new, old in zip(filtered, sample_tree))


class TestSavePayload:
    """Tests for build_save_payload."""

    def test_payload_shape(self, sample_task):
        payload = build_save_payload(sample_task, sample_task.subtasks)

        assert payload["projectId"] == "PRJ-001"
        assert payload["subtasks"][1]["subtasks"][0]["id"] == "PRJ-001-002.1"
        assert payload["subtasks"][0]["assigneeName"] == "Asha"

    def test_payload_has_no_view_flags(self, sample_task):
        payload = build_save_payload(sample_task, sample_task.subtasks)
        for key in ("isEditing", "isExpanded"):
            assert key not in payload["subtasks"][0]

    def test_payload_drops_drafts(self, sample_task):
        tree = sample_task.subtasks + [Subtask(id="PRJ-001-003", title="")]
        payload = build_save_payload(sample_task, tree)
        assert [s["id"] for s in payload["subtasks"]] == ["PRJ-001-001", "PRJ-001-002"]

    def test_round_trip(self, sample_task_data):
        """Saving and reloading yields the filtered tree."""
        task = load_task(sample_task_data)
        tree = task.subtasks + [Subtask(id="PRJ-001-003", title="", subtasks=[Subtask(title="orphan")])]

        payload = build_save_payload(task, tree)
        reloaded = load_task({**sample_task_data, **payload})

        assert reloaded.subtasks == filter_drafts(tree)
        assert [n.id for _, n in walk(reloaded.subtasks)] == ["PRJ-001-001", "PRJ-001-002", "PRJ-001-002.1"]

    def test_dump_subtasks_json_ready(self, sample_tree):
        dumped = dump_subtasks(sample_tree)
        assert dumped[1]["status"] == "Completed"
        assert isinstance(dumped[1]["subtasks"], list)
