"""
Pointer gestures and snapping geometry.
"""
from .events import Key, KeyEvent, PointerEvent
from .frames import FrameThrottle
from .session_base import GestureState, PointerHooks, PointerSession
from .drag import DragConfig, DragSession, create_drag_session
from .resize import ResizeConfig, ResizeSession

__all__ = [
    'Key',
    'KeyEvent',
    'PointerEvent',
    'FrameThrottle',
    'GestureState',
    'PointerHooks',
    'PointerSession',
    'DragConfig',
    'DragSession',
    'create_drag_session',
    'ResizeConfig',
    'ResizeSession'
]
