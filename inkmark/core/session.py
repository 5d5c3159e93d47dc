"""
Editor session: one object owning everything an open document needs.
"""
import logging
from typing import Optional

from PyQt5.QtCore import QObject, pyqtSignal

from inkmark.config import RenderConfig, RenderPreferences
from inkmark.core.annotations.history import HistoryTimeline
from inkmark.core.annotations.persistence import AnnotationPersistence, SaveScheduler
from inkmark.core.document.state import DocumentState

logger = logging.getLogger(__name__)


class EditorSession(QObject):
    """
    Explicit context passed to controllers and gesture sessions.

    Holds the live document, its history timeline, the render configuration
    and the autosave scheduler. Nothing here is module-global, so several
    sessions can coexist (one per window, or one per test).
    """

    # Signals
    document_opened = pyqtSignal(str)
    document_closed = pyqtSignal()

    def __init__(self, persistence: Optional[AnnotationPersistence] = None,
                 preferences: Optional[RenderPreferences] = None,
                 render_config: Optional[RenderConfig] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.document = DocumentState(parent=self)
        self.history = HistoryTimeline(self.document, parent=self)
        self.persistence = persistence or AnnotationPersistence()
        self.save_scheduler = SaveScheduler(self.document, self.persistence, parent=self)

        self.render_config = render_config or RenderConfig()
        self.preferences = preferences
        if self.preferences is not None:
            self.preferences.apply_to(self.render_config)

        self.doc_key: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.doc_key is not None

    def open_document(self, doc_key: str, page_count: int = 1) -> bool:
        """
        Open a document and restore its saved annotations, if any.

        Args:
            doc_key: Stable identifier of the document
            page_count: Number of pages

        Returns:
            True if saved annotations were restored
        """
        if self.is_open:
            self.close()

        self.document.reset(page_count)
        restored = False
        snapshot = self.persistence.load(doc_key)
        if snapshot is not None:
            snapshot.page_num = min(max(1, snapshot.page_num), self.document.page_count)
            self.document.restore(snapshot)
            restored = True
            logger.info("Restored %d annotations for %s", snapshot.annotation_count(), doc_key)

        self.doc_key = doc_key
        self.save_scheduler.set_doc_key(doc_key)
        self.history.init()
        self.document_opened.emit(doc_key)
        return restored

    def close(self) -> None:
        """Flush any pending save and forget the document."""
        if not self.is_open:
            return

        self.save_scheduler.flush()
        self.save_scheduler.set_doc_key(None)
        self.history.clear()
        self.document.reset()
        logger.info("Closed %s", self.doc_key)
        self.doc_key = None
        self.document_closed.emit()

    def apply_preferences(self) -> RenderConfig:
        """Push persisted preferences into the live render config."""
        if self.preferences is not None:
            self.preferences.apply_to(self.render_config)
        return self.render_config
