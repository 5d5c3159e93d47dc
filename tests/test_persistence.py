"""Unit tests for annotation persistence and autosave."""

import json
import logging
from unittest.mock import MagicMock

import pytest

from inkmark.core.annotations.models import Annotation
from inkmark.core.annotations.persistence import (
    SCHEMA_VERSION,
    AnnotationPersistence,
    SaveScheduler,
)


@pytest.fixture
def persistence(tmp_path):
    return AnnotationPersistence(str(tmp_path / "annotations"))


@pytest.fixture
def filled_document(document, text_box):
    document.add_annotation(1, text_box)
    document.add_annotation(2, Annotation.highlight([[0.1, 0.2, 0.3, 0.02]]))
    document.set_page(2)
    document.set_scale(1.25)
    return document


class TestAnnotationPersistence:
    """Tests for the JSON file store."""

    def test_save_and_load(self, persistence, filled_document):
        assert persistence.save(filled_document.snapshot(), "doc.pdf", 7) is True

        snapshot = persistence.load("doc.pdf")
        assert snapshot.page_num == 2
        assert snapshot.scale == 1.25
        assert snapshot.annotations == filled_document.annotations

    def test_file_layout(self, persistence, filled_document):
        persistence.save(filled_document.snapshot(), "doc.pdf", 7)
        with open(persistence.get_json_path("doc.pdf"), encoding='utf-8') as f:
            data = json.load(f)

        assert data['ver'] == SCHEMA_VERSION
        assert data['doc_key'] == "doc.pdf"
        assert data['annotations_version'] == 7
        assert set(data['annotations']) == {"1", "2"}
        assert data['annotations']["1"][0]['type'] == "text"

    def test_path_is_hashed(self, persistence):
        path = persistence.get_json_path("/home/user/My File.pdf")
        assert path.endswith(".json")
        assert "My File" not in path

    def test_load_missing(self, persistence):
        assert persistence.load("never-saved") is None
        assert persistence.has_saved("never-saved") is False

    def test_load_corrupt_file(self, persistence, caplog):
        path = persistence.get_json_path("doc.pdf")
        with open(path, 'w', encoding='utf-8') as f:
            f.write("{not json")
        with caplog.at_level(logging.WARNING):
            assert persistence.load("doc.pdf") is None
        assert "Failed to read" in caplog.text

    def test_load_unsupported_version(self, persistence):
        with open(persistence.get_json_path("doc.pdf"), 'w', encoding='utf-8') as f:
            json.dump({'ver': 99, 'annotations': {}}, f)
        assert persistence.load("doc.pdf") is None

    def test_load_version_one(self, persistence):
        with open(persistence.get_json_path("doc.pdf"), 'w', encoding='utf-8') as f:
            json.dump({'ver': 1, 'annotations': {
                '1': [{'type': 'highlight', 'rect': [0.1, 0.1, 0.2, 0.05]}],
            }}, f)
        snapshot = persistence.load("doc.pdf")
        assert snapshot.page_num == 1
        assert snapshot.annotations[1][0].rects == [[0.1, 0.1, 0.2, 0.05]]

    def test_delete(self, persistence, filled_document):
        persistence.save(filled_document.snapshot(), "doc.pdf")
        assert persistence.has_saved("doc.pdf")
        assert persistence.delete("doc.pdf") is True
        assert not persistence.has_saved("doc.pdf")
        assert persistence.delete("doc.pdf") is True

    def test_default_dir_under_app_data(self, inkmark_home):
        path = AnnotationPersistence().get_json_path("doc.pdf")
        assert path.startswith(str(inkmark_home))


class TestSaveScheduler:
    """Tests for debounced autosave."""

    def test_schedule_then_flush_writes(self, persistence, filled_document):
        scheduler = SaveScheduler(filled_document, persistence)
        scheduler.set_doc_key("doc.pdf")
        scheduler.schedule()
        assert scheduler.is_pending

        assert scheduler.flush() is True
        assert not scheduler.is_pending
        assert persistence.has_saved("doc.pdf")

    def test_repeated_schedules_collapse(self, filled_document):
        store = MagicMock()
        store.save.return_value = True
        scheduler = SaveScheduler(filled_document, store)
        scheduler.set_doc_key("doc.pdf")
        for _ in range(5):
            scheduler.schedule()
        scheduler.flush()
        store.save.assert_called_once()

    def test_unchanged_version_is_skipped(self, filled_document):
        store = MagicMock()
        store.save.return_value = True
        scheduler = SaveScheduler(filled_document, store)
        scheduler.set_doc_key("doc.pdf")

        assert scheduler.save_now() is True
        assert scheduler.save_now() is False
        filled_document.add_annotation(1, Annotation.note((0.5, 0.5)))
        assert scheduler.save_now() is True
        assert store.save.call_count == 2

    def test_no_doc_key_never_saves(self, filled_document):
        store = MagicMock()
        scheduler = SaveScheduler(filled_document, store)
        assert scheduler.save_now() is False
        store.save.assert_not_called()

    def test_failed_save_is_logged_and_retried(self, filled_document, caplog):
        store = MagicMock()
        store.save.return_value = False
        scheduler = SaveScheduler(filled_document, store)
        scheduler.set_doc_key("doc.pdf")
        listener = MagicMock()
        scheduler.saved.connect(listener)

        with caplog.at_level(logging.WARNING):
            assert scheduler.save_now() is False
        assert "Auto-save failed" in caplog.text
        listener.assert_called_once_with(False)

        store.save.return_value = True
        assert scheduler.save_now() is True

    def test_cancel(self, persistence, filled_document):
        scheduler = SaveScheduler(filled_document, persistence)
        scheduler.set_doc_key("doc.pdf")
        scheduler.schedule()
        scheduler.cancel()
        assert scheduler.flush() is False
        assert not persistence.has_saved("doc.pdf")
