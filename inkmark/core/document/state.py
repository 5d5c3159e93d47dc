"""
Live document state: current page, zoom scale and per-page annotations.
"""
import copy
import logging
from typing import Dict, List, Optional

from PyQt5.QtCore import QObject, pyqtSignal

from inkmark.core.annotations.models import Annotation, DocumentSnapshot

logger = logging.getLogger(__name__)


class DocumentState(QObject):
    """
    Owns the mutable annotation collection of one open document.

    Other subsystems (renderer, persistence) subscribe to
    ``annotations_changed``; every mutation made through this class emits it
    and bumps ``annotations_version``.
    """

    # Signals
    annotations_changed = pyqtSignal()
    page_changed = pyqtSignal(int)
    scale_changed = pyqtSignal(float)

    def __init__(self, page_count: int = 1, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.page_count: int = max(1, page_count)
        self.page_num: int = 1
        self.scale: float = 1.0
        self.tool: Optional[str] = None
        self.annotations: Dict[int, List[Annotation]] = {}
        self.annotations_version: int = 0

    def reset(self, page_count: int = 1) -> None:
        """Reset to an empty document with the given number of pages."""
        self.page_count = max(1, page_count)
        self.page_num = 1
        self.scale = 1.0
        self.tool = None
        self.annotations = {}
        self.annotations_version = 0
        self.annotations_changed.emit()

    def mark_annotations_changed(self) -> None:
        self.annotations_version += 1
        self.annotations_changed.emit()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> DocumentSnapshot:
        """
        Capture an independent deep copy of the restorable state.

        Returns:
            Snapshot sharing no mutable objects with the live state
        """
        return DocumentSnapshot(
            page_num=self.page_num,
            scale=self.scale,
            annotations=copy.deepcopy(self.annotations),
        )

    def restore(self, snapshot: DocumentSnapshot) -> None:
        """
        Replace the live state with a copy of a snapshot.

        The snapshot itself stays untouched so it can be restored again.

        Args:
            snapshot: State to restore
        """
        self.annotations = copy.deepcopy(snapshot.annotations)
        self.set_page(snapshot.page_num)
        self.set_scale(snapshot.scale)
        self.mark_annotations_changed()

    # ------------------------------------------------------------------
    # Page collections
    # ------------------------------------------------------------------

    def get_page_list(self, page_num: int) -> List[Annotation]:
        """
        Get the annotations on a page.

        Args:
            page_num: 1-based page number

        Returns:
            The live list for the page, or an empty list
        """
        return self.annotations.get(page_num, [])

    def set_page_list(self, page_num: int, annotations: List[Annotation]) -> List[Annotation]:
        """Replace a page's collection with a copy of the given list."""
        self.annotations[page_num] = list(annotations)
        self.mark_annotations_changed()
        return self.annotations[page_num]

    def add_annotation(self, page_num: int, annotation: Annotation) -> Annotation:
        """
        Append an annotation to a page.

        Args:
            page_num: 1-based page number
            annotation: Annotation to add

        Returns:
            The added annotation
        """
        self.annotations.setdefault(page_num, []).append(annotation)
        self.mark_annotations_changed()
        return annotation

    def find_annotation(self, uid: str) -> Optional[tuple]:
        """
        Locate an annotation by uid.

        Returns:
            (page_num, annotation) or None if not found
        """
        for page_num, page in self.annotations.items():
            for annotation in page:
                if annotation.uid == uid:
                    return page_num, annotation
        return None

    def replace_annotation(self, page_num: int, uid: str, **patch) -> Optional[Annotation]:
        """
        Replace an annotation with a patched copy.

        Args:
            page_num: Page holding the annotation
            uid: Annotation uid
            **patch: Fields to change

        Returns:
            The updated annotation, or None if it was not found
        """
        page = self.get_page_list(page_num)
        index = self._index_of(page, uid)
        if index is None:
            logger.debug("replace_annotation: %s not on page %d", uid, page_num)
            return None

        updated = copy.deepcopy(page[index])
        for name, value in patch.items():
            setattr(updated, name, value)

        next_list = list(page)
        next_list[index] = updated
        self.set_page_list(page_num, next_list)
        return updated

    def remove_annotation(self, page_num: int, uid: str) -> bool:
        """
        Remove an annotation from a page.

        Returns:
            True if the annotation was found and removed
        """
        page = self.get_page_list(page_num)
        index = self._index_of(page, uid)
        if index is None:
            return False

        next_list = list(page)
        del next_list[index]
        self.set_page_list(page_num, next_list)
        return True

    def annotation_count(self) -> int:
        """Get total number of annotations."""
        return sum(len(page) for page in self.annotations.values())

    def has_annotations(self) -> bool:
        return any(self.annotations.values())

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def set_page(self, page_num: int) -> None:
        if page_num != self.page_num:
            self.page_num = page_num
            self.page_changed.emit(page_num)

    def set_scale(self, scale: float) -> None:
        if scale != self.scale:
            self.scale = scale
            self.scale_changed.emit(scale)

    @staticmethod
    def _index_of(page: List[Annotation], uid: str) -> Optional[int]:
        for index, annotation in enumerate(page):
            if annotation.uid == uid:
                return index
        return None
