"""
Input event value objects consumed by gesture sessions, with Qt adapters.
"""
from dataclasses import dataclass
from enum import Enum

from PyQt5.QtCore import QEvent, Qt


class Key(Enum):
    SHIFT = "shift"
    ALT = "alt"
    ESCAPE = "escape"
    OTHER = "other"


_QT_KEYS = {
    Qt.Key_Shift: Key.SHIFT,
    Qt.Key_Alt: Key.ALT,
    Qt.Key_Escape: Key.ESCAPE,
}


@dataclass(frozen=True)
class PointerEvent:
    """A pointer position in screen pixels with modifier flags."""
    pointer_id: int
    x: float
    y: float
    shift: bool = False
    alt: bool = False

    @classmethod
    def from_mouse_event(cls, event, pointer_id: int = 0) -> "PointerEvent":
        """
        Convert a QMouseEvent.

        Qt5 mouse events carry no pointer id, so callers with several
        devices (tablet, touch) pass one explicitly.
        """
        pos = event.globalPos()
        modifiers = event.modifiers()
        return cls(
            pointer_id=pointer_id,
            x=pos.x(),
            y=pos.y(),
            shift=bool(modifiers & Qt.ShiftModifier),
            alt=bool(modifiers & Qt.AltModifier),
        )


@dataclass(frozen=True)
class KeyEvent:
    """A key press or release relevant to an active gesture."""
    key: Key
    pressed: bool

    @classmethod
    def from_key_event(cls, event) -> "KeyEvent":
        """Convert a QKeyEvent (press or release)."""
        return cls(
            key=_QT_KEYS.get(event.key(), Key.OTHER),
            pressed=event.type() == QEvent.KeyPress,
        )
