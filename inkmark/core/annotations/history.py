"""
Branching undo/redo timeline of whole-document snapshots.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from inkmark.core.annotations.models import DocumentSnapshot
from inkmark.core.document.state import DocumentState

logger = logging.getLogger(__name__)

INITIAL_LABEL = "Initial state"


@dataclass
class HistoryEntry:
    """One point on the timeline."""
    id: int
    label: str
    snapshot: DocumentSnapshot
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class TimelineView:
    """Chronological projection of the timeline."""
    past: List[HistoryEntry]
    present: Optional[HistoryEntry]
    future: List[HistoryEntry]


@dataclass
class RecentEntry:
    """Display row for a recency-first history list."""
    entry: HistoryEntry
    position: str  # "past", "present" or "future"

    @property
    def id(self) -> int:
        return self.entry.id

    @property
    def label(self) -> str:
        return self.entry.label


class HistoryTimeline(QObject):
    """
    Manages undo/redo for one document session.

    Entries are ordered chronologically along the current branch and
    ``cursor`` points at the present one. Committing after an undo discards
    the redo branch. None of the public operations raise; boundary calls
    return False so stale UI (shortcuts, buttons) can call them freely.
    """

    MAX = 100

    # Signals
    history_changed = pyqtSignal()

    def __init__(self, document: DocumentState, max_size: int = MAX,
                 parent: Optional[QObject] = None):
        """
        Initialize the timeline.

        Args:
            document: Live document state to snapshot and restore
            max_size: Maximum number of past entries to keep
        """
        super().__init__(parent)
        self.document = document
        self.max_size = max_size

        self.entries: List[HistoryEntry] = []
        self.cursor: int = -1
        self._counter: int = 0
        self.pending_label: Optional[str] = None

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def init(self, label: str = INITIAL_LABEL) -> None:
        """
        Reset the timeline to a single entry holding the current state.

        Args:
            label: Label of the initial entry
        """
        self.entries = [self._make_entry(label)]
        self.cursor = 0
        self.pending_label = None
        logger.debug("History initialized: %s", label)
        self.history_changed.emit()

    def begin(self, label: Optional[str] = None) -> None:
        """
        Open a transaction. Call BEFORE a state change.

        Does not create an entry. Calling it again before ``commit``
        overwrites the pending label.

        Args:
            label: Description used by the next commit
        """
        if not self.entries:
            self.init()
        self.pending_label = label

    def commit(self, label: Optional[str] = None) -> HistoryEntry:
        """
        Close a transaction. Call AFTER a state change.

        Args:
            label: Explicit label, overriding the pending one

        Returns:
            The new present entry
        """
        if not self.entries:
            self.init()

        # New branch: drop redo history
        del self.entries[self.cursor + 1:]

        entry = self._make_entry(label or self.pending_label)
        self.entries.append(entry)
        self.cursor = len(self.entries) - 1

        overflow = self.cursor - self.max_size
        if overflow > 0:
            del self.entries[:overflow]
            self.cursor = max(0, self.cursor - overflow)
            logger.debug("Evicted %d oldest history entries", overflow)

        self.pending_label = None
        self.history_changed.emit()
        return entry

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def can_undo(self) -> bool:
        """Check if undo is available."""
        return self.cursor > 0

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return 0 <= self.cursor < len(self.entries) - 1

    def undo(self) -> bool:
        """
        Step back one entry and restore it.

        Returns:
            True if undo was performed
        """
        if not self.can_undo():
            return False
        self._move_to(self.cursor - 1)
        return True

    def redo(self) -> bool:
        """
        Step forward one entry and restore it.

        Returns:
            True if redo was performed
        """
        if not self.can_redo():
            return False
        self._move_to(self.cursor + 1)
        return True

    def jump_to_history(self, entry_id) -> bool:
        """
        Move directly to an entry, across any number of steps.

        Args:
            entry_id: Id of the target entry, as an int or numeric string

        Returns:
            False if no entry has that id, True otherwise
        """
        try:
            entry_id = int(entry_id)
        except (TypeError, ValueError):
            return False
        index = self._index_of(entry_id)
        if index is None:
            return False
        if index != self.cursor:
            self._move_to(index)
        return True

    def clear(self) -> None:
        """Drop every entry. The id counter keeps counting."""
        self.entries = []
        self.cursor = -1
        self.pending_label = None
        self.history_changed.emit()

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    @property
    def present(self) -> Optional[HistoryEntry]:
        if self.cursor < 0:
            return None
        return self.entries[self.cursor]

    def get_history_timeline(self) -> TimelineView:
        """Get past, present and future, each in chronological order."""
        if self.cursor < 0:
            return TimelineView(past=[], present=None, future=[])
        return TimelineView(
            past=list(self.entries[:self.cursor]),
            present=self.entries[self.cursor],
            future=list(self.entries[self.cursor + 1:]),
        )

    def get_history_entries(self) -> List[HistoryEntry]:
        """Get every entry as one chronological list: past, present, future."""
        return list(self.entries)

    def get_recent_entries(self) -> List[RecentEntry]:
        """Get every entry newest first, tagged with its position, for display."""
        rows = []
        for index in range(len(self.entries) - 1, -1, -1):
            if index < self.cursor:
                position = "past"
            elif index == self.cursor:
                position = "present"
            else:
                position = "future"
            rows.append(RecentEntry(self.entries[index], position))
        return rows

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _make_entry(self, label: Optional[str]) -> HistoryEntry:
        self._counter += 1
        entry_id = self._counter
        return HistoryEntry(
            id=entry_id,
            label=label or f"Edit {entry_id}",
            snapshot=self.document.snapshot(),
        )

    def _move_to(self, index: int) -> None:
        self.cursor = index
        self.pending_label = None
        self.document.restore(self.entries[index].snapshot)
        self.history_changed.emit()

    def _index_of(self, entry_id: int) -> Optional[int]:
        for index, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return index
        return None
