"""Unit tests for the document state and annotation model."""

from unittest.mock import MagicMock

import pytest

from inkmark.core.annotations.models import Annotation, AnnotationType, TextAlign
from inkmark.core.document.state import DocumentState


class TestAnnotationModel:
    """Tests for annotation records."""

    def test_text_box_defaults(self):
        box = Annotation.text_box([0.1, 0.1, 0.2, 0.1])
        assert box.annotation_type == AnnotationType.TEXT
        assert box.font_size == 14
        assert box.color == "#111"
        assert box.align == TextAlign.LEFT

    def test_note_default_text(self):
        assert Annotation.note((0.2, 0.3)).text == "New note..."

    def test_uids_are_unique(self):
        assert Annotation.note((0, 0)).uid != Annotation.note((0, 0)).uid

    def test_note_has_no_bounds(self):
        assert Annotation.note((0.2, 0.3)).bounds() is None

    def test_moved_to_translates_highlight_group(self):
        hl = Annotation.highlight([[0.1, 0.1, 0.2, 0.02], [0.1, 0.2, 0.1, 0.02]])
        patch = hl.moved_to(0.3, 0.5)
        assert [r[:2] for r in patch["rects"]] == [pytest.approx([0.3, 0.5]), pytest.approx([0.3, 0.6])]

    def test_moved_to_note(self):
        assert Annotation.note((0.2, 0.3)).moved_to(0.4, 0.5) == {'pos': [0.4, 0.5]}

    def test_dict_round_trip_keeps_uid(self, text_box):
        restored = Annotation.from_dict(text_box.to_dict())
        assert restored == text_box

    def test_legacy_highlight_rect(self):
        hl = Annotation.from_dict({'type': 'highlight', 'rect': [0.1, 0.1, 0.2, 0.05]})
        assert hl.rects == [[0.1, 0.1, 0.2, 0.05]]
        assert hl.rect is None
        assert hl.uid


class TestDocumentState:
    """Tests for DocumentState."""

    def test_add_emits_and_bumps_version(self, document):
        listener = MagicMock()
        document.annotations_changed.connect(listener)
        document.add_annotation(2, Annotation.note((0.5, 0.5)))
        listener.assert_called_once_with()
        assert document.annotations_version == 1
        assert document.annotation_count() == 1

    def test_missing_page_is_empty(self, document):
        assert document.get_page_list(3) == []

    def test_snapshot_is_independent(self, document, text_box):
        document.add_annotation(1, text_box)
        snapshot = document.snapshot()
        text_box.text = "changed"
        assert snapshot.annotations[1][0].text == "Hello world"

    def test_restore_replaces_and_copies(self, document, text_box):
        document.add_annotation(1, text_box)
        snapshot = document.snapshot()
        document.add_annotation(2, Annotation.note((0.1, 0.1)))

        document.restore(snapshot)
        assert document.annotation_count() == 1
        document.get_page_list(1)[0].text = "edited"
        assert snapshot.annotations[1][0].text == "Hello world"

    def test_restore_notifies_page_and_scale(self, document):
        snapshot = document.snapshot()
        document.set_page(3)
        document.set_scale(1.5)
        pages, scales = MagicMock(), MagicMock()
        document.page_changed.connect(pages)
        document.scale_changed.connect(scales)

        document.restore(snapshot)
        assert (document.page_num, document.scale) == (1, 1.0)
        pages.assert_called_once_with(1)
        scales.assert_called_once_with(1.0)

    def test_restore_same_view_skips_page_signals(self, document):
        pages = MagicMock()
        document.page_changed.connect(pages)
        document.restore(document.snapshot())
        pages.assert_not_called()

    def test_replace_annotation_copies_record(self, document, text_box):
        document.add_annotation(1, text_box)
        updated = document.replace_annotation(1, text_box.uid, text="New")
        assert updated.text == "New"
        assert updated.uid == text_box.uid
        assert text_box.text == "Hello world"
        assert document.get_page_list(1)[0] is updated

    def test_replace_missing_returns_none(self, document):
        version = document.annotations_version
        assert document.replace_annotation(1, "nope", text="x") is None
        assert document.annotations_version == version

    def test_remove_annotation(self, document, text_box):
        document.add_annotation(1, text_box)
        assert document.remove_annotation(1, text_box.uid) is True
        assert document.remove_annotation(1, text_box.uid) is False
        assert not document.has_annotations()

    def test_find_annotation(self, document, text_box):
        document.add_annotation(3, text_box)
        page_num, found = document.find_annotation(text_box.uid)
        assert page_num == 3
        assert found is text_box
        assert document.find_annotation("missing") is None

    def test_page_and_scale_signals(self, document):
        pages, scales = MagicMock(), MagicMock()
        document.page_changed.connect(pages)
        document.scale_changed.connect(scales)

        document.set_page(2)
        document.set_page(2)
        document.set_scale(1.5)

        pages.assert_called_once_with(2)
        scales.assert_called_once_with(1.5)

    def test_reset(self):
        document = DocumentState(page_count=0)
        assert document.page_count == 1
        document.add_annotation(1, Annotation.note((0, 0)))
        document.set_page(1)
        document.reset(page_count=4)
        assert document.page_count == 4
        assert document.annotations == {}
        assert document.annotations_version == 0
