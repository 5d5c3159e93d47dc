"""
Handles persistence of annotations to/from JSON files, and debounced autosave.
"""
import hashlib
import json
import logging
import os
import time
from typing import Optional

from PyQt5.QtCore import QObject, QTimer, pyqtSignal

from inkmark.core.annotations.models import Annotation, DocumentSnapshot
from inkmark.utils.resource_loader import get_app_data_dir

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2
SUPPORTED_VERSIONS = (1, 2)
AUTOSAVE_DELAY_MS = 200


class AnnotationPersistence:
    """Manages saving and loading annotations to/from disk."""

    def __init__(self, storage_dir: Optional[str] = None):
        self._storage_dir: Optional[str] = storage_dir

    def get_storage_dir(self) -> str:
        """
        Get or create the directory holding saved annotation files.

        Returns:
            Path to the annotations directory
        """
        if self._storage_dir:
            os.makedirs(self._storage_dir, exist_ok=True)
            return self._storage_dir

        app_dir = os.path.join(str(get_app_data_dir()), 'annotations')
        os.makedirs(app_dir, exist_ok=True)
        self._storage_dir = app_dir
        return app_dir

    def get_json_path(self, doc_key: str) -> str:
        """
        Get the JSON file path for a document.

        Args:
            doc_key: Identifier of the document (path, or name|size|mtime)

        Returns:
            Path to the corresponding JSON annotations file
        """
        # Hash the key so any identifier maps to a safe filename
        key_hash = hashlib.md5(doc_key.encode()).hexdigest()
        return os.path.join(self.get_storage_dir(), f"{key_hash}.json")

    def save(self, snapshot: DocumentSnapshot, doc_key: str,
             annotations_version: int = 0) -> bool:
        """
        Save a document snapshot to its JSON file.

        Args:
            snapshot: State to save
            doc_key: Identifier of the document
            annotations_version: Change counter of the saved state

        Returns:
            True if save was successful, False otherwise
        """
        file_path = self.get_json_path(doc_key)
        data = {
            'ver': SCHEMA_VERSION,
            'saved_at': int(time.time() * 1000),
            'doc_key': doc_key,
            'page_num': snapshot.page_num,
            'scale': snapshot.scale,
            'annotations_version': annotations_version,
            'annotations': {
                str(page_num): [ann.to_dict() for ann in page]
                for page_num, page in snapshot.annotations.items()
            },
        }

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            return True
        except OSError as e:
            logger.warning("Failed to save annotations to %s: %s", file_path, e)
            return False

    def load(self, doc_key: str) -> Optional[DocumentSnapshot]:
        """
        Load a saved snapshot for a document.

        Args:
            doc_key: Identifier of the document

        Returns:
            The snapshot, or None if nothing usable was saved
        """
        file_path = self.get_json_path(doc_key)
        if not os.path.exists(file_path):
            return None

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read annotations from %s: %s", file_path, e)
            return None

        if not isinstance(data, dict) or data.get('ver') not in SUPPORTED_VERSIONS:
            logger.warning("Ignoring annotations file with unsupported schema: %s", file_path)
            return None

        stored_key = data.get('doc_key')
        if stored_key is not None and stored_key != doc_key:
            logger.warning("Annotations file is for a different document: %s", stored_key)

        try:
            annotations = {
                int(page_num): [Annotation.from_dict(item) for item in items]
                for page_num, items in (data.get('annotations') or {}).items()
            }
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Corrupt annotation record in %s: %s", file_path, e)
            return None

        return DocumentSnapshot(
            page_num=int(data.get('page_num', 1)),
            scale=float(data.get('scale', 1.0)),
            annotations=annotations,
        )

    def delete(self, doc_key: str) -> bool:
        """
        Delete the JSON annotation file for a document.

        Returns:
            True if deletion was successful or file didn't exist
        """
        file_path = self.get_json_path(doc_key)
        if not os.path.exists(file_path):
            return True

        try:
            os.remove(file_path)
            return True
        except OSError as e:
            logger.warning("Failed to delete %s: %s", file_path, e)
            return False

    def has_saved(self, doc_key: str) -> bool:
        """Check if saved annotations exist for a document."""
        return os.path.exists(self.get_json_path(doc_key))


class SaveScheduler(QObject):
    """
    Debounced autosave of the live document.

    ``schedule`` is fire-and-forget: repeated calls inside the delay collapse
    into one write, and a write is skipped when the document has not changed
    since the last successful save.
    """

    # Signals
    saved = pyqtSignal(bool)

    def __init__(self, document, persistence: AnnotationPersistence,
                 delay_ms: int = AUTOSAVE_DELAY_MS, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.document = document
        self.persistence = persistence
        self.delay_ms = delay_ms
        self.doc_key: Optional[str] = None
        self._last_saved_version: Optional[int] = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.save_now)

    def set_doc_key(self, doc_key: Optional[str]) -> None:
        self.doc_key = doc_key
        self._last_saved_version = None

    @property
    def is_pending(self) -> bool:
        return self._timer.isActive()

    def schedule(self, immediate: bool = False) -> None:
        """
        Request an autosave.

        Args:
            immediate: Save on the next event-loop turn instead of after the delay
        """
        self._timer.start(0 if immediate else self.delay_ms)

    def cancel(self) -> None:
        self._timer.stop()

    def flush(self) -> bool:
        """Run a pending save right away."""
        if not self._timer.isActive():
            return False
        self._timer.stop()
        return self.save_now()

    def save_now(self) -> bool:
        """
        Write the document if it changed since the last save.

        Returns:
            True if a write happened and succeeded
        """
        if not self.doc_key:
            return False

        version = self.document.annotations_version
        if version == self._last_saved_version:
            return False

        success = self.persistence.save(self.document.snapshot(), self.doc_key, version)
        if success:
            self._last_saved_version = version
        else:
            logger.warning("Auto-save failed for %s", self.doc_key)
        self.saved.emit(success)
        return success
