"""Unit tests for the history timeline."""

from unittest.mock import MagicMock

import pytest

from inkmark.core.annotations.history import INITIAL_LABEL, HistoryTimeline
from inkmark.core.annotations.models import Annotation


def add_note(document, x=0.5, y=0.5, page=1):
    return document.add_annotation(page, Annotation.note((x, y)))


def commit_edit(history, document, label=None):
    history.begin(label)
    add_note(document)
    return history.commit()


class TestTransactions:
    """Tests for init, begin and commit."""

    def test_init_creates_single_present_entry(self, document):
        history = HistoryTimeline(document)
        history.init()

        timeline = history.get_history_timeline()
        assert timeline.past == []
        assert timeline.future == []
        assert timeline.present.label == INITIAL_LABEL
        assert history.cursor == 0

    def test_begin_then_commit_records_label(self, history, document):
        """init -> begin("Move highlight") -> commit gives one past entry."""
        history.begin("Move highlight")
        history.commit()

        timeline = history.get_history_timeline()
        assert timeline.present.label == "Move highlight"
        assert len(timeline.past) == 1

    def test_begin_lazily_initializes(self, document):
        history = HistoryTimeline(document)
        history.begin("First")
        assert len(history.entries) == 1
        assert history.present.label == INITIAL_LABEL

    def test_begin_does_not_create_entry(self, history):
        history.begin("Pending")
        assert len(history.entries) == 1
        assert history.pending_label == "Pending"

    def test_last_begin_wins(self, history):
        history.begin("Outer")
        history.begin("Inner")
        assert history.commit().label == "Inner"

    def test_explicit_label_beats_pending(self, history):
        history.begin("Pending")
        assert history.commit("Explicit").label == "Explicit"
        assert history.pending_label is None

    def test_fallback_label_uses_entry_id(self, history):
        entry = history.commit()
        assert entry.label == f"Edit {entry.id}"

    def test_commit_snapshots_current_state(self, history, document):
        entry = commit_edit(history, document, "Add note")
        assert entry.snapshot.annotation_count() == 1

        # Later edits do not leak into the stored snapshot
        add_note(document)
        assert entry.snapshot.annotation_count() == 1

    def test_commit_truncates_future(self, history, document):
        for i in range(3):
            commit_edit(history, document, f"Edit {i}")
        history.undo()
        history.undo()
        assert len(history.get_history_timeline().future) == 2

        commit_edit(history, document, "Branch")
        timeline = history.get_history_timeline()
        assert timeline.future == []
        assert timeline.present.label == "Branch"
        assert [e.label for e in timeline.past] == [INITIAL_LABEL, "Edit 0"]

    def test_future_always_empty_after_commit(self, history, document):
        """Branch truncation holds across mixed undo/redo/commit sequences."""
        script = ["c", "c", "u", "c", "u", "u", "r", "c", "u", "c", "c", "u", "u", "u", "c"]
        for step in script:
            if step == "c":
                commit_edit(history, document)
                assert history.get_history_timeline().future == []
            elif step == "u":
                history.undo()
            else:
                history.redo()

    def test_history_changed_emitted(self, history):
        listener = MagicMock()
        history.history_changed.connect(listener)
        history.commit("One")
        history.undo()
        history.redo()
        assert listener.call_count == 3


class TestUndoRedo:
    """Tests for cursor navigation."""

    def test_undo_n_times_then_false(self, history, document):
        n = 5
        for i in range(n):
            commit_edit(history, document, f"Step {i}")

        results = [history.undo() for _ in range(n + 2)]
        assert results == [True] * n + [False, False]

        redos = [history.redo() for _ in range(n + 1)]
        assert redos == [True] * n + [False]

    def test_undo_beyond_start_restores_initial(self, history, document):
        commit_edit(history, document, "Add note")
        assert document.annotation_count() == 1

        assert history.undo() is True
        assert history.undo() is False
        assert document.annotation_count() == 0
        assert history.present.label == INITIAL_LABEL

    def test_undo_replaces_state(self, history, document):
        commit_edit(history, document, "One")
        commit_edit(history, document, "Two")
        history.undo()
        assert document.annotation_count() == 1

    def test_restore_does_not_alias_snapshot(self, history, document):
        commit_edit(history, document, "One")
        history.undo()
        history.redo()
        document.get_page_list(1)[0].text = "mutated"
        assert history.present.snapshot.annotations[1][0].text == "New note..."

    def test_undo_clears_pending_label(self, history, document):
        commit_edit(history, document)
        history.begin("Abandoned")
        history.undo()
        assert history.pending_label is None

    def test_restores_page_and_scale(self, history, document):
        document.set_page(2)
        document.set_scale(1.5)
        history.commit("Viewed")
        document.set_page(3)
        document.set_scale(2.0)
        history.commit("Moved on")

        history.undo()
        assert document.page_num == 2
        assert document.scale == 1.5

    def test_boundaries_on_empty_timeline(self, document):
        history = HistoryTimeline(document)
        assert history.undo() is False
        assert history.redo() is False
        assert history.present is None


class TestJumpToHistory:
    """Tests for direct jumps."""

    def test_unknown_id_returns_false(self, history):
        listener = MagicMock()
        history.history_changed.connect(listener)
        assert history.jump_to_history(9999) is False
        listener.assert_not_called()

    def test_jump_to_present_is_noop(self, history, document):
        entry = commit_edit(history, document)
        listener = MagicMock()
        history.history_changed.connect(listener)
        assert history.jump_to_history(entry.id) is True
        listener.assert_not_called()

    def test_jump_teleports_across_entries(self, history, document):
        first = history.present
        for i in range(4):
            commit_edit(history, document)

        assert history.jump_to_history(first.id) is True
        assert history.cursor == 0
        assert document.annotation_count() == 0

    def test_numeric_string_id(self, history, document):
        first = history.present
        commit_edit(history, document)
        assert history.jump_to_history(str(first.id)) is True
        assert history.cursor == 0

    @pytest.mark.parametrize("bad_id", ["abc", "", None])
    def test_non_numeric_id_returns_false(self, history, bad_id):
        assert history.jump_to_history(bad_id) is False

    def test_jump_then_redo_returns_to_same_present(self, history, document):
        entries = [commit_edit(history, document, f"Step {i}") for i in range(4)]
        before = history.present.label

        history.jump_to_history(entries[1].id)
        while history.redo():
            pass
        assert history.present.label == before
        assert document.annotation_count() == 4


class TestEviction:
    """Tests for the MAX bound."""

    def test_max_plus_k_commits(self, history, document):
        k = 7
        for i in range(HistoryTimeline.MAX + k):
            history.commit(f"Step {i}")

        entries = history.get_history_entries()
        assert len(entries) == HistoryTimeline.MAX + 1
        assert history.cursor == len(entries) - 1
        assert history.present.label == f"Step {HistoryTimeline.MAX + k - 1}"
        # Initial state plus the oldest commits are gone
        assert entries[0].label == f"Step {k - 1}"

    def test_small_max_size(self, document):
        history = HistoryTimeline(document, max_size=2)
        history.init()
        for i in range(5):
            history.commit(f"Step {i}")
        assert [e.label for e in history.entries] == ["Step 2", "Step 3", "Step 4"]
        assert history.undo() and history.undo()
        assert history.undo() is False


class TestProjections:
    """Tests for the two listing orders."""

    def test_history_entries_are_chronological(self, history, document):
        commit_edit(history, document, "A")
        commit_edit(history, document, "B")
        history.undo()

        labels = [e.label for e in history.get_history_entries()]
        assert labels == [INITIAL_LABEL, "A", "B"]

    def test_recent_entries_newest_first(self, history, document):
        commit_edit(history, document, "A")
        commit_edit(history, document, "B")
        history.undo()

        rows = history.get_recent_entries()
        assert [(r.label, r.position) for r in rows] == [
            ("B", "future"),
            ("A", "present"),
            (INITIAL_LABEL, "past"),
        ]

    def test_clear_keeps_id_counter(self, history, document):
        last = commit_edit(history, document)
        history.clear()
        assert history.get_history_timeline().present is None
        history.init()
        assert history.present.id > last.id

    def test_timeline_lists_are_copies(self, history, document):
        commit_edit(history, document)
        timeline = history.get_history_timeline()
        timeline.past.clear()
        assert len(history.get_history_timeline().past) == 1


@pytest.mark.parametrize("label", ["Initial state", "Opened"])
def test_init_label(document, label):
    history = HistoryTimeline(document)
    history.init(label)
    assert history.present.label == label
