"""
Controller for annotation editing, navigation and history operations.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from inkmark.core.annotations.models import Annotation, AnnotationType
from inkmark.core.annotations.transactions import instrument_handlers, operation
from inkmark.core.interaction.drag import DragConfig, DragSession
from inkmark.core.interaction.geometry import BoxSize, clamp, fit_aspect
from inkmark.core.interaction.resize import ResizeConfig, ResizeSession
from inkmark.core.interaction.session_base import PointerHooks

logger = logging.getLogger(__name__)

MIN_SCALE = 0.3
MAX_SCALE = 3.0
ZOOM_STEP = 0.1

# Placement thresholds in pixels
MIN_HIGHLIGHT_PX = 3
MIN_TEXT_BOX_PX = 10
MIN_IMAGE_PX = 8

SUMMARY_LIMIT = 50

# (x, y, w, h) in canvas pixels
PixelRect = Tuple[float, float, float, float]


def summarize_text(text: Optional[str]) -> str:
    """Collapse whitespace and shorten long text for history labels."""
    summary = re.sub(r'\s+', ' ', text or '').strip()
    if len(summary) > SUMMARY_LIMIT:
        return summary[:SUMMARY_LIMIT - 3] + '…'
    return summary


def describe(verb: str, annotation: Optional[Annotation]) -> str:
    """
    Build a history label such as ``Move text: "Hello"`` or ``Delete note``.
    """
    if annotation is None:
        return f"{verb} annotation"
    if annotation.annotation_type == AnnotationType.TEXT:
        summary = summarize_text(annotation.text)
        return f'{verb} text: "{summary}"' if summary else f"{verb} text box"
    return f"{verb} {annotation.annotation_type.value}"


def parse_page_input(raw) -> Optional[int]:
    """Parse a page number typed by the user; None when invalid."""
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def parse_zoom_input(raw) -> Optional[float]:
    """
    Parse a zoom percentage such as ``"150"``, ``" 150 %"`` or ``"87,5%"``.

    Returns:
        Scale factor (1.0 == 100%), or None when invalid
    """
    text = str(raw).strip().rstrip('%').strip().replace(',', '.')
    try:
        percent = float(text)
    except ValueError:
        return None
    if percent != percent or percent <= 0:
        return None
    return percent / 100.0


@dataclass
class TargetView:
    """
    Pixel-space view of one annotation widget, used to build gestures.

    ``box_size`` is only needed for point-anchored annotations (notes) whose
    on-screen marker has a size the model does not store.
    """
    canvas_size: Callable[[], Tuple[float, float]]
    apply_offset: Callable[[float, float], None]
    clear_transform: Callable[[], None]
    apply_scale: Optional[Callable[[float, float], None]] = None
    box_size: Optional[Callable[[], Tuple[float, float]]] = None
    hooks: PointerHooks = field(default_factory=PointerHooks)


class AnnotationController(QObject):
    """Handles annotation operations on one EditorSession."""

    # Signals
    tool_changed = pyqtSignal(object)
    annotation_added = pyqtSignal(object)
    annotation_removed = pyqtSignal(str)

    def __init__(self, session, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.session = session
        self.handlers: Dict[str, Callable] = instrument_handlers(
            self._handler_table(), session.history, session.save_scheduler
        )

    @property
    def document(self):
        return self.session.document

    @property
    def history(self):
        return self.session.history

    def _handler_table(self) -> Dict[str, Callable]:
        return {
            'insert_annotation': self._insert_annotation,
            'patch_annotation': self._patch_annotation,
            'remove_annotation': self._remove_annotation,
            'prev_page': self.prev_page,
            'next_page': self.next_page,
            'go_to_page': self.go_to_page,
            'zoom_in': self.zoom_in,
            'zoom_out': self.zoom_out,
            'set_zoom': self.set_zoom,
            'change_tool': self.change_tool,
            'toggle_guides': self.toggle_guides,
            'cycle_edge': self.cycle_edge,
            'undo': self.undo,
            'redo': self.redo,
            'jump_to_history': self.jump_to_history,
        }

    # ------------------------------------------------------------------
    # Document-mutating primitives (wrapped in history transactions)
    # ------------------------------------------------------------------

    @operation(label="Add annotation")
    def _insert_annotation(self, page_num: int, annotation: Annotation,
                           label: Optional[str] = None) -> Annotation:
        if label:
            self.history.begin(label)
        self.document.add_annotation(page_num, annotation)
        self.annotation_added.emit(annotation)
        return annotation

    @operation(label="Edit annotation")
    def _patch_annotation(self, page_num: int, uid: str, patch: Dict[str, object],
                          label: Optional[str] = None) -> Annotation:
        if label:
            self.history.begin(label)
        updated = self.document.replace_annotation(page_num, uid, **patch)
        if updated is None:
            raise KeyError(f"Annotation {uid} not found on page {page_num}")
        return updated

    @operation(label="Delete annotation")
    def _remove_annotation(self, page_num: int, uid: str, label: Optional[str] = None) -> bool:
        if label:
            self.history.begin(label)
        if not self.document.remove_annotation(page_num, uid):
            raise KeyError(f"Annotation {uid} not found on page {page_num}")
        self.annotation_removed.emit(uid)
        return True

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def add_highlight(self, rect_px: PixelRect, canvas_w: float, canvas_h: float,
                      page_num: Optional[int] = None) -> Optional[Annotation]:
        """
        Add a highlight from a dragged pixel rectangle.

        Returns:
            The new annotation, or None when the rectangle is too small
        """
        x, y, w, h = rect_px
        if w <= MIN_HIGHLIGHT_PX or h <= MIN_HIGHLIGHT_PX or not canvas_w or not canvas_h:
            return None
        rect = self._normalize(x, y, w, h, canvas_w, canvas_h)
        return self.handlers['insert_annotation'](
            self._page(page_num), Annotation.highlight([rect]), "Add highlight"
        )

    def add_note(self, x: float, y: float, canvas_w: float, canvas_h: float,
                 text: str = "New note...", page_num: Optional[int] = None) -> Optional[Annotation]:
        """Add a note at a pixel point, clamped into the canvas."""
        if not canvas_w or not canvas_h:
            return None
        pos = (clamp(x, 0, canvas_w) / canvas_w, clamp(y, 0, canvas_h) / canvas_h)
        return self.handlers['insert_annotation'](
            self._page(page_num), Annotation.note(pos, text), "Add note"
        )

    def add_text_box(self, rect_px: PixelRect, canvas_w: float, canvas_h: float,
                     text: str = "", page_num: Optional[int] = None) -> Optional[Annotation]:
        """
        Add a text box. Font size follows the drawn height.

        Returns:
            The new annotation, or None when the rectangle is too small
        """
        x, y, w, h = rect_px
        if w < MIN_TEXT_BOX_PX or h < MIN_TEXT_BOX_PX or not canvas_w or not canvas_h:
            return None
        annotation = Annotation.text_box(
            self._normalize(x, y, w, h, canvas_w, canvas_h),
            text=text,
            font_size=max(12, round(h * 0.45)),
        )
        return self.handlers['insert_annotation'](self._page(page_num), annotation, "Add text box")

    def add_image(self, rect_px: PixelRect, canvas_w: float, canvas_h: float, src: str,
                  page_num: Optional[int] = None) -> Optional[Annotation]:
        x, y, w, h = rect_px
        if w < MIN_IMAGE_PX or h < MIN_IMAGE_PX or not canvas_w or not canvas_h:
            return None
        annotation = Annotation.image(self._normalize(x, y, w, h, canvas_w, canvas_h), src)
        return self.handlers['insert_annotation'](self._page(page_num), annotation, "Add image")

    @staticmethod
    def placement_rect(start_x: float, start_y: float, current_x: float, current_y: float,
                       aspect_ratio: Optional[float] = None) -> PixelRect:
        """
        Rectangle spanned by a placement drag.

        Args:
            aspect_ratio: width / height to keep (image placement with Shift)
        """
        if aspect_ratio:
            return fit_aspect(start_x, start_y, current_x, current_y, aspect_ratio)
        return (min(start_x, current_x), min(start_y, current_y),
                abs(current_x - start_x), abs(current_y - start_y))

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def update_text(self, uid: str, text: str) -> bool:
        """
        Replace the text of a note or text box.

        Returns:
            False when the annotation is missing or the text is unchanged
        """
        found = self.document.find_annotation(uid)
        if found is None:
            return False
        page_num, annotation = found
        if annotation.text == text:
            return False

        if annotation.annotation_type == AnnotationType.TEXT:
            summary = summarize_text(text)
            label = f'Update text: "{summary}"' if summary else "Clear text box"
        else:
            label = describe("Update", annotation)
        self.handlers['patch_annotation'](page_num, uid, {'text': text}, label)
        return True

    def delete_annotation(self, uid: str) -> bool:
        found = self.document.find_annotation(uid)
        if found is None:
            return False
        page_num, annotation = found
        return self.handlers['remove_annotation'](page_num, uid, describe("Delete", annotation))

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def drag_session_for(self, uid: str, view: TargetView) -> Optional[DragSession]:
        """
        Build a move gesture for an annotation.

        Returns:
            The session, or None if the annotation no longer exists
        """
        found = self.document.find_annotation(uid)
        if found is None:
            return None
        page_num, annotation = found

        def start_left_top() -> Tuple[float, float]:
            cw, ch = view.canvas_size()
            current = self._current(uid) or annotation
            if current.is_point_anchored:
                px, py = current.pos or (0.0, 0.0)
                return px * cw, py * ch
            x, y, _, _ = current.bounds() or (0.0, 0.0, 0.0, 0.0)
            return x * cw, y * ch

        def size_at_start() -> BoxSize:
            cw, ch = view.canvas_size()
            current = self._current(uid) or annotation
            if current.is_point_anchored:
                w, h = view.box_size() if view.box_size else (0.0, 0.0)
            else:
                _, _, nw, nh = current.bounds() or (0.0, 0.0, 0.0, 0.0)
                w, h = nw * cw, nh * ch
            return BoxSize(cw, ch, w, h)

        def apply_visual(x: float, y: float, origin_x: float, origin_y: float) -> None:
            view.apply_offset(x - origin_x, y - origin_y)

        def commit(x: float, y: float, cw: float, ch: float, started: bool) -> bool:
            if not started or not cw or not ch:
                return False
            current = self._current(uid)
            if current is None:
                return False
            patch = current.moved_to(x / cw, y / ch)
            if all(getattr(current, name) == value for name, value in patch.items()):
                return False
            self.document.replace_annotation(page_num, uid, **patch)
            return True

        config = DragConfig(
            get_start_left_top=start_left_top,
            get_size_at_start=size_at_start,
            apply_visual=apply_visual,
            clear_visual=view.clear_transform,
            commit=commit,
            page_num=page_num,
            exclude=annotation,
            history_label=lambda: describe("Move", self._current(uid) or annotation),
            hooks=view.hooks,
        )
        return DragSession(config, self.session)

    def resize_session_for(self, uid: str, view: TargetView) -> Optional[ResizeSession]:
        """Build a bottom-right resize gesture for a text box."""
        found = self.document.find_annotation(uid)
        if found is None:
            return None
        page_num, annotation = found
        if annotation.annotation_type != AnnotationType.TEXT or annotation.rect is None:
            logger.debug("Annotation %s is not a resizable text box", uid)
            return None

        def start_rect() -> Tuple[float, float, float, float]:
            cw, ch = view.canvas_size()
            x, y, w, h = (self._current(uid) or annotation).rect
            return x * cw, y * ch, w * cw, h * ch

        def apply_visual(scale_x: float, scale_y: float) -> None:
            if view.apply_scale:
                view.apply_scale(scale_x, scale_y)

        def commit(left: float, top: float, w: float, h: float,
                   cw: float, ch: float, started: bool) -> bool:
            if not started or not cw or not ch:
                return False
            current = self._current(uid)
            if current is None:
                return False
            rect = [left / cw, top / ch, w / cw, h / ch]
            if rect == current.rect:
                return False
            self.document.replace_annotation(page_num, uid, rect=rect)
            return True

        config = ResizeConfig(
            get_start_rect=start_rect,
            get_canvas_size=view.canvas_size,
            apply_visual=apply_visual,
            clear_visual=view.clear_transform,
            commit=commit,
            page_num=page_num,
            exclude=annotation,
            history_label=lambda: describe("Resize", self._current(uid) or annotation),
            hooks=view.hooks,
        )
        return ResizeSession(config, self.session)

    # ------------------------------------------------------------------
    # Navigation, zoom and tools (never recorded in history)
    # ------------------------------------------------------------------

    @operation(mutates_document=False)
    def prev_page(self) -> bool:
        if self.document.page_num <= 1:
            return False
        self.document.set_page(self.document.page_num - 1)
        return True

    @operation(mutates_document=False)
    def next_page(self) -> bool:
        if self.document.page_num >= self.document.page_count:
            return False
        self.document.set_page(self.document.page_num + 1)
        return True

    @operation(mutates_document=False)
    def go_to_page(self, raw) -> bool:
        """Go to a typed page number; invalid or out-of-range input is ignored."""
        page_num = parse_page_input(raw)
        if page_num is None or not 1 <= page_num <= self.document.page_count:
            return False
        self.document.set_page(page_num)
        return True

    @operation(mutates_document=False)
    def zoom_in(self, step: float = ZOOM_STEP) -> float:
        return self._set_scale(self.document.scale + step)

    @operation(mutates_document=False)
    def zoom_out(self, step: float = ZOOM_STEP) -> float:
        return self._set_scale(self.document.scale - step)

    @operation(mutates_document=False)
    def set_zoom(self, raw) -> bool:
        scale = parse_zoom_input(raw)
        if scale is None:
            return False
        self._set_scale(scale)
        return True

    @operation(mutates_document=False)
    def change_tool(self, tool: Optional[str]) -> Optional[str]:
        """Select a placement tool; selecting the active tool again clears it."""
        self.document.tool = None if tool == self.document.tool else tool
        self.tool_changed.emit(self.document.tool)
        return self.document.tool

    @operation(mutates_document=False)
    def toggle_guides(self) -> bool:
        prefs = self.session.preferences
        if prefs is not None:
            prefs.toggle_guides()
            self.session.apply_preferences()
        else:
            config = self.session.render_config
            config.update(snap_to_guides=not config.snap_to_guides)
        logger.info("Guide snapping %s", "on" if self.session.render_config.snap_to_guides else "off")
        return self.session.render_config.snap_to_guides

    @operation(mutates_document=False)
    def cycle_edge(self) -> int:
        prefs = self.session.preferences
        if prefs is not None:
            prefs.cycle_edge()
            self.session.apply_preferences()
        else:
            config = self.session.render_config
            config.update(snap_edge_px=(config.snap_edge_px % 16) + 4)
        return self.session.render_config.snap_edge_px

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @operation(mutates_document=False)
    def undo(self) -> bool:
        """
        Undo the last annotation action.

        Returns:
            True if undo was successful
        """
        if self.history.undo():
            self.session.save_scheduler.schedule()
            return True
        return False

    @operation(mutates_document=False)
    def redo(self) -> bool:
        """
        Redo the last undone annotation action.

        Returns:
            True if redo was successful
        """
        if self.history.redo():
            self.session.save_scheduler.schedule()
            return True
        return False

    @operation(mutates_document=False)
    def jump_to_history(self, entry_id) -> bool:
        present = self.history.present
        if not self.history.jump_to_history(entry_id):
            return False
        if present is not self.history.present:
            self.session.save_scheduler.schedule()
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _page(self, page_num: Optional[int]) -> int:
        return self.document.page_num if page_num is None else page_num

    def _current(self, uid: str) -> Optional[Annotation]:
        found = self.document.find_annotation(uid)
        return found[1] if found else None

    def _set_scale(self, scale: float) -> float:
        scale = round(clamp(scale, MIN_SCALE, MAX_SCALE), 2)
        self.document.set_scale(scale)
        return scale

    @staticmethod
    def _normalize(x: float, y: float, w: float, h: float,
                   canvas_w: float, canvas_h: float):
        w, h = min(w, canvas_w), min(h, canvas_h)
        x = clamp(x, 0, canvas_w - w)
        y = clamp(y, 0, canvas_h - h)
        return [x / canvas_w, y / canvas_h, w / canvas_w, h / canvas_h]
