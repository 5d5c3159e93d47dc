"""Pytest configuration and shared fixtures."""

import sys
from unittest.mock import MagicMock

import pytest
from PyQt5.QtCore import QCoreApplication

from inkmark.config import RenderConfig
from inkmark.core.annotations.history import HistoryTimeline
from inkmark.core.annotations.models import Annotation
from inkmark.core.annotations.persistence import AnnotationPersistence
from inkmark.core.document.state import DocumentState
from inkmark.core.session import EditorSession


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """One Qt application per test run; timers need it."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    yield app


@pytest.fixture(autouse=True)
def inkmark_home(tmp_path, monkeypatch):
    """Keep every data and config write inside the test's tmp dir."""
    monkeypatch.setenv("INKMARK_HOME", str(tmp_path / "home"))
    return tmp_path / "home"


@pytest.fixture
def document():
    """Empty three-page document."""
    return DocumentState(page_count=3)


@pytest.fixture
def history(document):
    """Initialized timeline over the document fixture."""
    timeline = HistoryTimeline(document)
    timeline.init()
    return timeline


class ImmediateThrottle:
    """Frame throttle stand-in that paints on every request."""

    def __init__(self, callback):
        self._callback = callback
        self.requests = 0

    def request(self):
        self.requests += 1
        self._callback()

    def cancel(self):
        pass

    def flush(self):
        return False


@pytest.fixture
def context(document, history):
    """Minimal session context for gesture tests."""
    ctx = MagicMock()
    ctx.document = document
    ctx.history = history
    ctx.render_config = RenderConfig()
    ctx.save_scheduler = MagicMock()
    return ctx


@pytest.fixture
def editor_session(tmp_path):
    """Real editor session with an open document."""
    session = EditorSession(persistence=AnnotationPersistence(str(tmp_path / "annotations")))
    session.open_document("doc.pdf", page_count=3)
    yield session
    session.save_scheduler.cancel()


@pytest.fixture
def text_box():
    """Text box at (100, 100) 200x50 on an 800x1000 canvas."""
    return Annotation.text_box([0.125, 0.1, 0.25, 0.05], text="Hello world")


@pytest.fixture
def immediate_throttle():
    """Throttle factory that paints synchronously on every request."""
    return ImmediateThrottle
