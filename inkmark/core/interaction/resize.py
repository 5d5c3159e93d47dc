"""
Bottom-right handle resize with snapping; top-left corner stays fixed.
"""
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from inkmark.core.annotations.models import Annotation
from inkmark.core.interaction.frames import FrameThrottle
from inkmark.core.interaction.geometry import (
    AlignmentLines,
    SnapResult,
    collect_alignment_lines,
    resolve_resize,
)
from inkmark.core.interaction.session_base import PointerHooks, PointerSession


@dataclass
class ResizeConfig:
    """
    What a resize session needs from its target.

    ``apply_visual`` receives scale factors relative to the start size, for a
    transform-only preview. ``commit`` receives
    (left, top, width, height, canvas_width, canvas_height, did_move).
    """
    get_start_rect: Callable[[], Tuple[float, float, float, float]]
    get_canvas_size: Callable[[], Tuple[float, float]]
    apply_visual: Callable[[float, float], None]
    clear_visual: Callable[[], None]
    commit: Callable[[float, float, float, float, float, float, bool], bool]
    page_num: int = 1
    exclude: Optional[Annotation] = None
    history_label: Optional[Callable[[], Optional[str]]] = None
    hooks: PointerHooks = field(default_factory=PointerHooks)


class ResizeSession(PointerSession):
    """Resizes one box from its bottom-right corner."""

    def __init__(self, config: ResizeConfig, context, throttle_factory: Callable = FrameThrottle):
        super().__init__(context, config.hooks, throttle_factory)
        self.config = config
        self.left = self.top = 0.0
        self.start_width = self.start_height = 0.0
        self.canvas_width = self.canvas_height = 0.0

    def _arm(self) -> None:
        self.left, self.top, self.start_width, self.start_height = self.config.get_start_rect()
        self.canvas_width, self.canvas_height = self.config.get_canvas_size()

        if self.context.render_config.snap_to_guides:
            self.lines = collect_alignment_lines(
                self.context.document.get_page_list(self.config.page_num),
                self.config.exclude,
                self.canvas_width,
                self.canvas_height,
            )
        else:
            self.lines = AlignmentLines()

    def _history_label(self) -> Optional[str]:
        if self.config.history_label:
            return self.config.history_label()
        return None

    def _resolve(self) -> SnapResult:
        render_config = self.context.render_config
        return resolve_resize(
            self.left, self.top, self.start_width, self.start_height,
            self.start_width + self.dx, self.start_height + self.dy,
            self.canvas_width, self.canvas_height, self.lines,
            edge_threshold=self._edge_threshold(),
            grid_px=render_config.grid_px,
            min_width=render_config.min_text_w,
            min_height=render_config.min_text_h,
            snap_to_guides=render_config.snap_to_guides,
            axis_lock=self.axis_lock,
            grid=self.grid,
        )

    def _apply_visual(self, result: SnapResult) -> None:
        scale_x = result.x / self.start_width if self.start_width else 1.0
        scale_y = result.y / self.start_height if self.start_height else 1.0
        self.config.apply_visual(scale_x, scale_y)

    def _clear_visual(self) -> None:
        self.config.clear_visual()

    def _commit(self, result: SnapResult, started: bool) -> bool:
        return self.config.commit(
            self.left, self.top, result.x, result.y,
            self.canvas_width, self.canvas_height, started,
        )
