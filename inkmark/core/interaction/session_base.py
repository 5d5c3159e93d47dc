"""
Shared pointer-gesture state machine for drag and resize sessions.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from inkmark.core.interaction.events import Key, KeyEvent, PointerEvent
from inkmark.core.interaction.frames import FrameThrottle
from inkmark.core.interaction.geometry import AlignmentLines, SnapResult

logger = logging.getLogger(__name__)


class GestureState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"
    SETTLING = "settling"


@dataclass
class PointerHooks:
    """Optional environment callbacks shared by every gesture type."""
    show_guides: Optional[Callable[[Optional[float], Optional[float]], None]] = None
    clear_guides: Optional[Callable[[], None]] = None
    capture_pointer: Optional[Callable[[int], None]] = None
    release_pointer: Optional[Callable[[int], None]] = None


class PointerSession:
    """
    One interactive pointer gesture over a single target.

    Transitions: IDLE -> ARMED (start) -> DRAGGING (first real movement,
    opens a history transaction) -> SETTLING (up, cancel or Escape) -> IDLE.

    Subclasses provide the geometry: ``_arm``, ``_resolve``,
    ``_apply_visual``, ``_clear_visual`` and ``_commit``.
    """

    def __init__(self, context, hooks: Optional[PointerHooks] = None,
                 throttle_factory: Callable = FrameThrottle):
        """
        Args:
            context: Editor session providing history, render_config and
                save_scheduler
            hooks: Guide display and pointer capture callbacks
            throttle_factory: Builds the per-frame paint throttle
        """
        self.context = context
        self.hooks = hooks or PointerHooks()
        self.state = GestureState.IDLE

        self.pointer_id: Optional[int] = None
        self.start_x = 0.0
        self.start_y = 0.0
        self.dx = 0.0
        self.dy = 0.0
        self.started = False
        self.axis_lock = False
        self.grid = False
        self.lines = AlignmentLines()

        self._throttle = throttle_factory(self._paint)

    @property
    def active(self) -> bool:
        return self.state in (GestureState.ARMED, GestureState.DRAGGING)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, event: PointerEvent) -> bool:
        """
        Arm the session on pointer-down.

        Returns:
            False if a gesture is already in progress
        """
        if self.state != GestureState.IDLE:
            logger.debug("Ignoring pointer-down; session is %s", self.state.value)
            return False

        self.pointer_id = event.pointer_id
        self.start_x, self.start_y = event.x, event.y
        self.dx = self.dy = 0.0
        self.started = False
        self.axis_lock = event.shift
        self.grid = event.alt

        self._arm()
        self.state = GestureState.ARMED
        self._capture()
        return True

    def pointer_move(self, event: PointerEvent) -> None:
        if not self._owns(event):
            return

        self.dx = event.x - self.start_x
        self.dy = event.y - self.start_y
        if not self.started and (self.dx or self.dy):
            self.context.history.begin(self._history_label())
            self.started = True
            self.state = GestureState.DRAGGING
        self._throttle.request()

    def pointer_up(self, event: PointerEvent) -> bool:
        """
        Finish the gesture and commit.

        Returns:
            True if a history entry was produced
        """
        if not self._owns(event):
            return False
        return self._finish(cancelled=False)

    def pointer_cancel(self, event: PointerEvent) -> None:
        if not self._owns(event):
            return
        self._finish(cancelled=True)

    def key_event(self, event: KeyEvent) -> None:
        if not self.active:
            return

        if event.key == Key.SHIFT:
            self.axis_lock = event.pressed
            self._throttle.request()
        elif event.key == Key.ALT:
            self.grid = event.pressed
            self._throttle.request()
        elif event.key == Key.ESCAPE and event.pressed:
            self._finish(cancelled=True)

    def flush_frame(self) -> bool:
        """Paint a coalesced frame immediately, if one is pending."""
        return self._throttle.flush()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _owns(self, event: PointerEvent) -> bool:
        return self.active and event.pointer_id == self.pointer_id

    def _paint(self) -> None:
        if not self.active:
            return
        result = self._resolve()
        if self.hooks.show_guides:
            self.hooks.show_guides(result.guide_x, result.guide_y)
        self._apply_visual(result)

    def _finish(self, cancelled: bool) -> bool:
        self.state = GestureState.SETTLING
        self._throttle.cancel()

        # Release input and visuals before commit so a raising commit
        # cannot leave the pointer captured
        self._release()
        if self.hooks.clear_guides:
            self.hooks.clear_guides()
        self._clear_visual()

        started = self.started
        try:
            if cancelled:
                changed = False
                logger.debug("Gesture cancelled (moved=%s)", started)
            else:
                changed = bool(self._commit(self._resolve(), started))
        finally:
            self._reset()

        if changed and started:
            self.context.history.commit()
            self.context.save_scheduler.schedule()
            return True
        return False

    def _reset(self) -> None:
        self.state = GestureState.IDLE
        self.pointer_id = None
        self.started = False
        self.dx = self.dy = 0.0
        self.lines = AlignmentLines()

    def _capture(self) -> None:
        if not self.hooks.capture_pointer:
            return
        try:
            self.hooks.capture_pointer(self.pointer_id)
        except Exception as e:
            # Capture only improves tracking; the gesture works without it
            logger.warning("Pointer capture failed: %s", e)

    def _release(self) -> None:
        if not self.hooks.release_pointer:
            return
        try:
            self.hooks.release_pointer(self.pointer_id)
        except Exception as e:
            logger.warning("Pointer release failed: %s", e)

    def _edge_threshold(self) -> float:
        return self.context.render_config.snap_edge_px

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def _arm(self) -> None:
        raise NotImplementedError

    def _history_label(self) -> Optional[str]:
        return None

    def _resolve(self) -> SnapResult:
        raise NotImplementedError

    def _apply_visual(self, result: SnapResult) -> None:
        raise NotImplementedError

    def _clear_visual(self) -> None:
        raise NotImplementedError

    def _commit(self, result: SnapResult, started: bool) -> bool:
        raise NotImplementedError
