"""
Animation-frame throttling for visual feedback.
"""
from typing import Callable, Optional

from PyQt5.QtCore import QObject, QTimer

# ~60 Hz
FRAME_INTERVAL_MS = 16


class FrameThrottle(QObject):
    """
    Coalesces repeated requests into at most one call per frame.

    Intermediate requests are dropped, not queued: whatever state the callback
    reads when the frame fires is what gets painted.
    """

    def __init__(self, callback: Callable[[], None], interval_ms: int = FRAME_INTERVAL_MS,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._callback = callback
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._fire)

    @property
    def pending(self) -> bool:
        return self._timer.isActive()

    def request(self) -> None:
        """Schedule a frame unless one is already pending."""
        if not self._timer.isActive():
            self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()

    def flush(self) -> bool:
        """
        Run a pending frame now.

        Returns:
            True if a frame was pending and ran
        """
        if not self._timer.isActive():
            return False
        self._timer.stop()
        self._callback()
        return True

    def _fire(self) -> None:
        self._callback()
