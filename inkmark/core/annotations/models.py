"""
Annotation data model.

All coordinates are normalized: fractions of the current canvas width and
height. Nothing is clamped here; the interaction layer keeps boxes inside the
canvas.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

# [x, y, w, h]
Rect = List[float]


class AnnotationType(Enum):
    HIGHLIGHT = "highlight"
    NOTE = "note"
    TEXT = "text"
    IMAGE = "image"


class TextAlign(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


def _new_uid() -> str:
    return uuid.uuid4().hex


@dataclass
class Annotation:
    """Represents a single annotation record on a page."""
    annotation_type: AnnotationType

    # Text boxes and images
    rect: Optional[Rect] = None

    # Highlights (one or more rectangles)
    rects: Optional[List[Rect]] = None

    # Notes
    pos: Optional[List[float]] = None

    # Notes and text boxes
    text: Optional[str] = None

    # Text box style
    font_size: Optional[int] = None
    color: Optional[str] = None
    align: Optional[TextAlign] = None

    # Images
    src: Optional[str] = None

    # Survives deep copies, so an annotation can be found again after undo
    uid: str = field(default_factory=_new_uid)

    @classmethod
    def highlight(cls, rects: List[Rect]) -> "Annotation":
        return cls(AnnotationType.HIGHLIGHT, rects=[list(r) for r in rects])

    @classmethod
    def note(cls, pos: Tuple[float, float], text: str = "New note...") -> "Annotation":
        return cls(AnnotationType.NOTE, pos=list(pos), text=text)

    @classmethod
    def text_box(cls, rect: Rect, text: str = "", font_size: int = 14,
                 color: str = "#111", align: TextAlign = TextAlign.LEFT) -> "Annotation":
        return cls(AnnotationType.TEXT, rect=list(rect), text=text,
                   font_size=font_size, color=color, align=align)

    @classmethod
    def image(cls, rect: Rect, src: str) -> "Annotation":
        return cls(AnnotationType.IMAGE, rect=list(rect), src=src)

    @property
    def is_point_anchored(self) -> bool:
        return self.annotation_type == AnnotationType.NOTE

    def bounds(self) -> Optional[Rect]:
        """
        Get the normalized bounding rectangle of the annotation.

        Returns:
            [x, y, w, h], or None for point-anchored annotations
        """
        if self.annotation_type == AnnotationType.HIGHLIGHT:
            if not self.rects:
                return None
            x0 = min(r[0] for r in self.rects)
            y0 = min(r[1] for r in self.rects)
            x1 = max(r[0] + r[2] for r in self.rects)
            y1 = max(r[1] + r[3] for r in self.rects)
            return [x0, y0, x1 - x0, y1 - y0]
        if self.rect is not None:
            return list(self.rect)
        return None

    def moved_to(self, x: float, y: float) -> Dict[str, object]:
        """
        Build the field patch that moves this annotation's origin to (x, y).

        Highlights translate every rectangle by the same offset so the group
        keeps its shape.

        Args:
            x: New normalized left (or point x for notes)
            y: New normalized top (or point y for notes)

        Returns:
            Keyword patch suitable for DocumentState.replace_annotation
        """
        if self.annotation_type == AnnotationType.NOTE:
            return {'pos': [x, y]}
        if self.annotation_type == AnnotationType.HIGHLIGHT:
            bounds = self.bounds() or [x, y, 0.0, 0.0]
            dx, dy = x - bounds[0], y - bounds[1]
            return {'rects': [[r[0] + dx, r[1] + dy, r[2], r[3]] for r in self.rects or []]}
        w, h = (self.rect[2], self.rect[3]) if self.rect else (0.0, 0.0)
        return {'rect': [x, y, w, h]}

    def to_dict(self) -> Dict[str, object]:
        """Convert annotation to dictionary for JSON serialization."""
        data: Dict[str, object] = {
            'uid': self.uid,
            'type': self.annotation_type.value,
        }

        if self.rect is not None:
            data['rect'] = list(self.rect)
        if self.rects is not None:
            data['rects'] = [list(r) for r in self.rects]
        if self.pos is not None:
            data['pos'] = list(self.pos)
        if self.text is not None:
            data['text'] = self.text
        if self.font_size is not None:
            data['font_size'] = self.font_size
        if self.color is not None:
            data['color'] = self.color
        if self.align is not None:
            data['align'] = self.align.value
        if self.src is not None:
            data['src'] = self.src

        return data

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "Annotation":
        """Create annotation from dictionary."""
        annotation_type = AnnotationType(data['type'])
        rects = data.get('rects')

        # Older records store a single highlight rectangle under 'rect'
        if annotation_type == AnnotationType.HIGHLIGHT and rects is None and data.get('rect'):
            rects = [data['rect']]
            rect = None
        else:
            rect = data.get('rect')

        align = data.get('align')

        return Annotation(
            annotation_type=annotation_type,
            rect=list(rect) if rect is not None else None,
            rects=[list(r) for r in rects] if rects is not None else None,
            pos=list(data['pos']) if data.get('pos') is not None else None,
            text=data.get('text'),
            font_size=data.get('font_size'),
            color=data.get('color'),
            align=TextAlign(align) if align else None,
            src=data.get('src'),
            uid=data.get('uid') or _new_uid(),
        )


@dataclass
class DocumentSnapshot:
    """
    Independent copy of everything needed to restore the editor.

    Owned exclusively by whoever holds it; never aliased with live state.
    """
    page_num: int
    scale: float
    annotations: Dict[int, List[Annotation]] = field(default_factory=dict)

    def annotation_count(self) -> int:
        return sum(len(page) for page in self.annotations.values())
