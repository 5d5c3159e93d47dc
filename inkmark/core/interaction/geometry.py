"""
Pure snapping geometry for moving and resizing boxes on the canvas.

Everything here works in device pixels and holds no state. Positions are the
top-left corner of the moving box.
"""
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from inkmark.core.annotations.models import Annotation


@dataclass
class BoxSize:
    """Canvas and box dimensions captured at gesture start."""
    canvas_width: float
    canvas_height: float
    width: float
    height: float


@dataclass
class AlignmentLines:
    """Candidate guide positions: vertical lines (x) and horizontal lines (y)."""
    x_lines: List[float] = field(default_factory=list)
    y_lines: List[float] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.x_lines or self.y_lines)


@dataclass
class SnapResult:
    """Snapped position (or size) plus the guide lines used, if any."""
    x: float
    y: float
    guide_x: Optional[float] = None
    guide_y: Optional[float] = None


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def snap_to_edge_of_container(value: float, max_value: float, threshold: float) -> float:
    """
    Pull a coordinate onto the container's near or far edge.

    Args:
        value: Coordinate to snap
        max_value: Far edge position
        threshold: Snap distance in pixels

    Returns:
        0, max_value, or value unchanged
    """
    if abs(value) <= threshold:
        return 0
    if abs(max_value - value) <= threshold:
        return max_value
    return value


def snap_to_grid(value: float, grid_size: float) -> float:
    """Round to the nearest multiple of grid_size (halves round up)."""
    if grid_size <= 0:
        return value
    return math.floor(value / grid_size + 0.5) * grid_size


def _dedupe(values: Iterable[float]) -> List[float]:
    # Lines closer than half a pixel collapse onto the first one seen
    seen = set()
    out = []
    for v in values:
        key = math.floor(v * 2 + 0.5) / 2
        if key not in seen:
            seen.add(key)
            out.append(v)
    return out


def collect_alignment_lines(page_annotations: Iterable[Annotation],
                            excluding: Optional[Annotation],
                            canvas_width: float,
                            canvas_height: float) -> AlignmentLines:
    """
    Gather guide lines from every other annotation on a page.

    Boxes contribute their edges and centers on both axes; notes contribute
    their anchor point.

    Args:
        page_annotations: Annotations on the page
        excluding: The annotation being moved (matched by uid)
        canvas_width: Canvas width in pixels
        canvas_height: Canvas height in pixels

    Returns:
        De-duplicated alignment lines in pixels
    """
    excluded_uid = excluding.uid if excluding is not None else None
    x_lines: List[float] = []
    y_lines: List[float] = []

    for ann in page_annotations:
        if ann.uid == excluded_uid:
            continue
        if ann.is_point_anchored:
            px, py = ann.pos or (0.0, 0.0)
            x_lines.append(px * canvas_width)
            y_lines.append(py * canvas_height)
            continue

        bounds = ann.bounds()
        if bounds is None:
            continue
        nx, ny, nw, nh = bounds
        x, y = nx * canvas_width, ny * canvas_height
        w, h = nw * canvas_width, nh * canvas_height
        x_lines.extend((x, x + w, x + w / 2))
        y_lines.extend((y, y + h, y + h / 2))

    return AlignmentLines(x_lines=_dedupe(x_lines), y_lines=_dedupe(y_lines))


def _snap_axis(start: float, length: float, lines: List[float],
               threshold: float) -> Tuple[Optional[float], Optional[float]]:
    """
    Snap one axis of a moving box against a set of lines.

    Returns:
        (new start, line used), or (None, None) when nothing is in range
    """
    best_distance = math.inf
    best_start = None
    best_line = None
    leading, trailing, center = start, start + length, start + length / 2

    for line in lines:
        d_leading = abs(line - leading)
        d_trailing = abs(line - trailing)
        d_center = abs(line - center)
        d = min(d_leading, d_trailing, d_center)
        if d > threshold or d >= best_distance:
            continue
        best_distance = d
        best_line = line
        # Prefer leading, then trailing, then center on equal distance
        if d == d_leading:
            best_start = line
        elif d == d_trailing:
            best_start = line - length
        else:
            best_start = line - length / 2

    return best_start, best_line


def snap_move(candidate_left: float, candidate_top: float, size: BoxSize,
              lines: AlignmentLines, threshold: float) -> SnapResult:
    """
    Magnetically snap a moving box to the nearest guide on each axis.

    Args:
        candidate_left: Proposed left in pixels
        candidate_top: Proposed top in pixels
        size: Box dimensions
        lines: Guide lines for the session
        threshold: Maximum snap distance in pixels

    Returns:
        Adjusted position and the guide line used on each axis
    """
    new_x, guide_x = _snap_axis(candidate_left, size.width, lines.x_lines, threshold)
    new_y, guide_y = _snap_axis(candidate_top, size.height, lines.y_lines, threshold)
    return SnapResult(
        x=candidate_left if new_x is None else new_x,
        y=candidate_top if new_y is None else new_y,
        guide_x=guide_x,
        guide_y=guide_y,
    )


def snap_resize(left: float, top: float, width: float, height: float,
                lines: AlignmentLines, threshold: float) -> SnapResult:
    """
    Snap the right and bottom edges of a box anchored at its top-left corner.

    Returns:
        SnapResult whose x/y hold the new width/height
    """
    right, bottom = left + width, top + height
    snap_right = _nearest(right, lines.x_lines, threshold)
    snap_bottom = _nearest(bottom, lines.y_lines, threshold)
    return SnapResult(
        x=width if snap_right is None else snap_right - left,
        y=height if snap_bottom is None else snap_bottom - top,
        guide_x=snap_right,
        guide_y=snap_bottom,
    )


def _nearest(value: float, lines: List[float], threshold: float) -> Optional[float]:
    best_distance = math.inf
    best = None
    for line in lines:
        d = abs(line - value)
        if d <= threshold and d < best_distance:
            best_distance = d
            best = line
    return best


def lock_axis(x: float, y: float, origin_x: float, origin_y: float,
              dx: float, dy: float) -> Tuple[float, float]:
    """Pin the non-dominant axis back to its origin. Ties keep x free."""
    if abs(dx) >= abs(dy):
        return x, origin_y
    return origin_x, y


def _grid_axis(value: float, guide: Optional[float], grid_px: float) -> Tuple[float, Optional[float]]:
    # A guide only stays visible if the grid left the box on it.
    snapped = snap_to_grid(value, grid_px)
    return snapped, (guide if snapped == value else None)


def resolve_move(origin_x: float, origin_y: float, dx: float, dy: float,
                 size: BoxSize, lines: AlignmentLines, *, edge_threshold: float,
                 grid_px: float, snap_to_guides: bool = True,
                 axis_lock: bool = False, grid: bool = False) -> SnapResult:
    """
    Full move pipeline shared by live feedback and the final commit.

    Order: axis lock, clamp into the canvas, container edges, guides, grid.

    Args:
        origin_x: Left at gesture start
        origin_y: Top at gesture start
        dx: Pointer delta x since start
        dy: Pointer delta y since start
        size: Box and canvas dimensions
        lines: Guide lines for the session
        edge_threshold: Container-edge and guide snap distance
        grid_px: Grid spacing
        snap_to_guides: Whether guide snapping is enabled
        axis_lock: Shift held
        grid: Alt held

    Returns:
        Final position and guides to display
    """
    x, y = origin_x + dx, origin_y + dy
    if axis_lock:
        x, y = lock_axis(x, y, origin_x, origin_y, dx, dy)

    max_x = size.canvas_width - size.width
    max_y = size.canvas_height - size.height
    x = clamp(x, 0, max_x)
    y = clamp(y, 0, max_y)
    x = snap_to_edge_of_container(x, max_x, edge_threshold)
    y = snap_to_edge_of_container(y, max_y, edge_threshold)

    guide_x = guide_y = None
    if snap_to_guides and lines:
        snapped = snap_move(x, y, size, lines, edge_threshold)
        x, y, guide_x, guide_y = snapped.x, snapped.y, snapped.guide_x, snapped.guide_y

    if grid:
        x, guide_x = _grid_axis(x, guide_x, grid_px)
        y, guide_y = _grid_axis(y, guide_y, grid_px)

    return SnapResult(x=x, y=y, guide_x=guide_x, guide_y=guide_y)


def resolve_resize(left: float, top: float, start_width: float, start_height: float,
                   width: float, height: float, canvas_width: float, canvas_height: float,
                   lines: AlignmentLines, *, edge_threshold: float, grid_px: float,
                   min_width: float, min_height: float, snap_to_guides: bool = True,
                   axis_lock: bool = False, grid: bool = False) -> SnapResult:
    """
    Full resize pipeline for a box anchored at (left, top).

    Order: clamp to [min, available], axis lock, container edge, guides, grid.

    Returns:
        SnapResult whose x/y hold the final width/height
    """
    max_w = max(min_width, canvas_width - left)
    max_h = max(min_height, canvas_height - top)

    w = clamp(width, min_width, max_w)
    h = clamp(height, min_height, max_h)

    if axis_lock:
        if abs(w - start_width) >= abs(h - start_height):
            h = start_height
        else:
            w = start_width

    w = snap_to_edge_of_container(w, max_w, edge_threshold)
    h = snap_to_edge_of_container(h, max_h, edge_threshold)

    guide_x = guide_y = None
    if snap_to_guides and lines:
        snapped = snap_resize(left, top, w, h, lines, edge_threshold)
        w, h, guide_x, guide_y = snapped.x, snapped.y, snapped.guide_x, snapped.guide_y

    if grid:
        w, guide_x = _grid_axis(w, guide_x, grid_px)
        h, guide_y = _grid_axis(h, guide_y, grid_px)

    return SnapResult(x=w, y=h, guide_x=guide_x, guide_y=guide_y)


def fit_aspect(start_x: float, start_y: float, current_x: float, current_y: float,
               ratio: float) -> Tuple[float, float, float, float]:
    """
    Aspect-locked placement rectangle dragged from (start_x, start_y).

    The start point stays a corner of the result; the constrained axis
    shrinks toward it.

    Args:
        ratio: width / height to keep

    Returns:
        (x, y, w, h) in pixels
    """
    x, y = min(start_x, current_x), min(start_y, current_y)
    w, h = abs(current_x - start_x), abs(current_y - start_y)
    if ratio <= 0:
        return x, y, w, h

    if w / max(h, 1) > ratio:
        # Too wide: derive width from height
        w = h * ratio
        x = start_x if current_x >= start_x else start_x - w
    else:
        # Too tall: derive height from width
        h = w / ratio
        y = start_y if current_y >= start_y else start_y - h
    return x, y, w, h
