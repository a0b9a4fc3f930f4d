"""
Tests for path-addressed tree mutation.

Covers:
- Field updates at any depth and structural isolation of other nodes
- Removal, child and root insertion
- Toggle operations on the view state
- Silent no-op for paths that do not resolve
"""

import pytest

from tasktree.models import Subtask, SubtaskStatus
from tasktree.services.subtask_ids import SubtaskIdGenerator
from tasktree.services.tree_mutator import (
    add_child,
    add_root,
    get_node,
    remove_node,
    subtree_ids,
    toggle_edit,
    toggle_expand,
    update_field,
    walk,
)
from tasktree.services.view_state import ViewState


class TestWalkAndGet:
    """Tests for traversal helpers."""

    def test_walk_visits_every_node_once(self, deep_tree):
        paths = [path for path, _ in walk(deep_tree)]
        assert paths == [(0,), (0, 0), (0, 1), (0, 1, 0), (1,)]

    def test_get_node(self, deep_tree):
        assert get_node(deep_tree, [0, 1, 0]).title == "R1.2.1"
        assert get_node(deep_tree, [1]).title == "R2"

    @pytest.mark.parametrize("path", [[], [5], [0, 9], [1, 0], [-1], [0, -1]])
    def test_get_node_missing(self, deep_tree, path):
        assert get_node(deep_tree, path) is None

    def test_subtree_ids(self, deep_tree):
        assert list(subtree_ids(deep_tree[0])) == ["P-001", "P-001.1", "P-001.2", "P-001.2.1"]


class TestUpdateField:
    """Tests for update_field."""

    def test_update_nested_title(self, deep_tree):
        new_tree = update_field(deep_tree, [0, 1, 0], "title", "Renamed")

        assert get_node(new_tree, [0, 1, 0]).title == "Renamed"
        assert get_node(deep_tree, [0, 1, 0]).title == "R1.2.1"

    def test_structural_isolation(self, deep_tree):
        """Updating [0,1] leaves [0,0] and [1] equal and identical."""
        snapshot = [node.model_copy(deep=True) for node in deep_tree]

        new_tree = update_field(deep_tree, [0, 1], "remarks", "checked")

        assert get_node(new_tree, [0, 1]).remarks == "checked"
        assert get_node(new_tree, [0, 0]) == get_node(snapshot, [0, 0])
        assert get_node(new_tree, [1]) == get_node(snapshot, [1])
        assert get_node(new_tree, [0, 1, 0]) == get_node(snapshot, [0, 1, 0])
        # Off-path siblings are shared, not copied
        assert new_tree[1] is deep_tree[1]
        assert new_tree[0].subtasks[0] is deep_tree[0].subtasks[0]
        # Input tree unchanged
        assert deep_tree == snapshot

    def test_path_nodes_are_copied(self, deep_tree):
        new_tree = update_field(deep_tree, [0, 1], "title", "X")

        assert new_tree is not deep_tree
        assert new_tree[0] is not deep_tree[0]
        assert new_tree[0].subtasks is not deep_tree[0].subtasks

    def test_completion_coerced_to_int(self, deep_tree):
        new_tree = update_field(deep_tree, [1], "completion", "75")
        assert get_node(new_tree, [1]).completion == 75

    def test_completion_not_clamped(self, deep_tree):
        """The mutator leaves range checks to the caller."""
        new_tree = update_field(deep_tree, [1], "completion", 150)
        assert get_node(new_tree, [1]).completion == 150

    def test_text_field_none_becomes_empty(self, deep_tree):
        new_tree = update_field(deep_tree, [0], "title", None)
        node = get_node(new_tree, [0])

        assert node.title == ""
        assert node.is_draft

    def test_remarks_none_becomes_empty(self, deep_tree):
        new_tree = update_field(deep_tree, [1], "remarks", None)
        assert get_node(new_tree, [1]).remarks == ""

    @pytest.mark.parametrize("field,value", [
        ("completion", None),
        ("completion", "abc"),
        ("completion", [50]),
        ("story_points", "lots"),
        ("status", "Unknown"),
    ])
    def test_bad_value_raises_value_error(self, deep_tree, field, value):
        with pytest.raises(ValueError):
            update_field(deep_tree, [0], field, value)

    def test_status_coerced_to_enum(self, deep_tree):
        new_tree = update_field(deep_tree, [0], "status", "Paused")
        assert get_node(new_tree, [0]).status is SubtaskStatus.PAUSED

    def test_wire_field_name_accepted(self, deep_tree):
        new_tree = update_field(deep_tree, [0], "assigneeName", "Meera")
        assert get_node(new_tree, [0]).assignee_name == "Meera"

    @pytest.mark.parametrize("field", ["id", "subtasks", "bogus"])
    def test_non_editable_field_rejected(self, deep_tree, field):
        with pytest.raises(ValueError):
            update_field(deep_tree, [0], field, "x")

    @pytest.mark.parametrize("path", [[], [2], [0, 5], [1, 0], [-1]])
    def test_missing_path_is_noop(self, deep_tree, path):
        assert update_field(deep_tree, path, "title", "X") is deep_tree


class TestRemoveNode:
    """Tests for remove_node."""

    def test_remove_top_level(self, deep_tree):
        new_tree = remove_node(deep_tree, [0])

        assert [n.title for n in new_tree] == ["R2"]
        assert len(deep_tree) == 2

    def test_remove_nested(self, deep_tree):
        new_tree = remove_node(deep_tree, [0, 1, 0])

        assert get_node(new_tree, [0, 1]).subtasks == []
        assert len(get_node(deep_tree, [0, 1]).subtasks) == 1

    def test_remove_missing_is_noop(self, deep_tree):
        assert remove_node(deep_tree, [0, 7]) is deep_tree


class TestAddNodes:
    """Tests for add_child and add_root."""

    def test_add_child_appends_draft(self, deep_tree):
        new_tree, new_id = add_child(deep_tree, [0, 1], "P")

        assert new_id == "P-001.2.2"
        child = get_node(new_tree, [0, 1, 1])
        assert child.id == "P-001.2.2"
        assert child.title == ""
        assert child.status == SubtaskStatus.PENDING
        assert child.completion == 0
        assert len(get_node(deep_tree, [0, 1]).subtasks) == 1

    def test_add_child_to_leaf_creates_children(self, deep_tree):
        new_tree, new_id = add_child(deep_tree, [1], "P")

        assert new_id == "P-002.1"
        assert get_node(new_tree, [1]).subtasks[0].id == "P-002.1"

    def test_add_child_missing_path(self, deep_tree):
        new_tree, new_id = add_child(deep_tree, [4], "P")

        assert new_tree is deep_tree
        assert new_id is None

    def test_add_child_empty_path_is_noop(self, deep_tree):
        new_tree, new_id = add_child(deep_tree, [], "P")
        assert new_tree is deep_tree
        assert new_id is None

    def test_add_root(self, deep_tree):
        new_tree, new_id = add_root(deep_tree, "P")

        assert new_id == "P-003"
        assert new_tree[-1].id == "P-003"
        assert new_tree[0] is deep_tree[0]
        assert len(deep_tree) == 2

    def test_add_root_to_empty_tree(self):
        new_tree, new_id = add_root([], "PRJ-001")
        assert new_id == "PRJ-001-001"
        assert len(new_tree) == 1

    def test_shared_generator_never_reuses(self):
        generator = SubtaskIdGenerator("PRJ-001")
        tree, first = add_root([], "PRJ-001", generator)
        tree = remove_node(tree, [0])
        tree, second = add_root(tree, "PRJ-001", generator)

        assert first == "PRJ-001-001"
        assert second == "PRJ-001-002"


class TestToggles:
    """Tests for toggle_edit and toggle_expand."""

    def test_toggle_expand_twice_restores(self, deep_tree):
        view = ViewState()

        assert toggle_expand(view, deep_tree, [0, 1]) is True
        assert toggle_expand(view, deep_tree, [0, 1]) is False
        assert not any(view.is_expanded(node.id) for _, node in walk(deep_tree))

    def test_toggle_does_not_cascade(self, deep_tree):
        view = ViewState()
        toggle_expand(view, deep_tree, [0])

        assert view.is_expanded("P-001")
        assert not view.is_expanded("P-001.1")
        assert not view.is_expanded("P-001.2")

    def test_toggle_edit_only_addressed_node(self, deep_tree):
        view = ViewState()
        toggle_edit(view, deep_tree, [0, 0])

        assert view.is_editing("P-001.1")
        assert [node.id for _, node in walk(deep_tree) if view.is_editing(node.id)] == ["P-001.1"]

    def test_toggle_missing_path(self, deep_tree):
        view = ViewState()
        assert toggle_edit(view, deep_tree, [9]) is None
        assert toggle_expand(view, deep_tree, [0, 9]) is None

    def test_toggles_leave_tree_untouched(self, deep_tree):
        snapshot = [node.model_copy(deep=True) for node in deep_tree]
        toggle_edit(ViewState(), deep_tree, [0])
        assert deep_tree == snapshot


def test_update_then_remove_sequence(sample_tree):
    """Worked example: removing B1 leaves B with an empty child list."""
    tree = remove_node(sample_tree, [1, 0])

    assert tree[1].subtasks == []
    assert tree[1].title == "B"
    assert isinstance(tree[1], Subtask)
