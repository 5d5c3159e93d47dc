"""
Generic pointer-drag with snapping, guides, history and debounced save.
"""
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from inkmark.core.annotations.models import Annotation
from inkmark.core.interaction.events import PointerEvent
from inkmark.core.interaction.frames import FrameThrottle
from inkmark.core.interaction.geometry import (
    AlignmentLines,
    BoxSize,
    SnapResult,
    collect_alignment_lines,
    resolve_move,
)
from inkmark.core.interaction.session_base import PointerHooks, PointerSession


@dataclass
class DragConfig:
    """
    What a drag session needs from its target.

    ``apply_visual`` receives the proposed position and the start position so
    the target can translate itself without relayout. ``commit`` is called
    once at release with the final position, the canvas size and whether the
    pointer actually moved; it returns True when it changed the document.
    """
    get_start_left_top: Callable[[], Tuple[float, float]]
    get_size_at_start: Callable[[], BoxSize]
    apply_visual: Callable[[float, float, float, float], None]
    clear_visual: Callable[[], None]
    commit: Callable[[float, float, float, float, bool], bool]
    page_num: int = 1
    exclude: Optional[Annotation] = None
    history_label: Optional[Callable[[], Optional[str]]] = None
    hooks: PointerHooks = field(default_factory=PointerHooks)


class DragSession(PointerSession):
    """Moves one box, snapping to canvas edges, alignment guides and the grid."""

    def __init__(self, config: DragConfig, context, throttle_factory: Callable = FrameThrottle):
        super().__init__(context, config.hooks, throttle_factory)
        self.config = config
        self.origin_x = 0.0
        self.origin_y = 0.0
        self.size = BoxSize(0.0, 0.0, 0.0, 0.0)

    def _arm(self) -> None:
        self.origin_x, self.origin_y = self.config.get_start_left_top()
        self.size = self.config.get_size_at_start()

        render_config = self.context.render_config
        if render_config.snap_to_guides:
            self.lines = collect_alignment_lines(
                self.context.document.get_page_list(self.config.page_num),
                self.config.exclude,
                self.size.canvas_width,
                self.size.canvas_height,
            )
        else:
            self.lines = AlignmentLines()

    def _history_label(self) -> Optional[str]:
        if self.config.history_label:
            return self.config.history_label()
        return None

    def _resolve(self) -> SnapResult:
        render_config = self.context.render_config
        return resolve_move(
            self.origin_x, self.origin_y, self.dx, self.dy, self.size, self.lines,
            edge_threshold=self._edge_threshold(),
            grid_px=render_config.grid_px,
            snap_to_guides=render_config.snap_to_guides,
            axis_lock=self.axis_lock,
            grid=self.grid,
        )

    def _apply_visual(self, result: SnapResult) -> None:
        self.config.apply_visual(result.x, result.y, self.origin_x, self.origin_y)

    def _clear_visual(self) -> None:
        self.config.clear_visual()

    def _commit(self, result: SnapResult, started: bool) -> bool:
        return self.config.commit(
            result.x, result.y, self.size.canvas_width, self.size.canvas_height, started
        )


def create_drag_session(config: DragConfig, context,
                        throttle_factory: Callable = FrameThrottle) -> Callable[[PointerEvent], bool]:
    """
    Build a drag session for one target.

    Args:
        config: Target callbacks
        context: Editor session (history, render config, save scheduler)

    Returns:
        The session's start function; the session itself is ``start.__self__``
    """
    return DragSession(config, context, throttle_factory).start
