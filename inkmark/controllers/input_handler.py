from typing import Optional

from PyQt5.QtCore import Qt

from inkmark.core.interaction.events import Key, KeyEvent, PointerEvent
from inkmark.core.interaction.session_base import PointerSession


class UserInputHandler:
    """
    Routes keyboard and mouse input to the annotation controller and to the
    gesture currently in progress.
    """
    def __init__(self, controller):
        """
        Initializes the handler with a reference to the annotation controller.

        Args:
            controller (AnnotationController): Controller receiving shortcuts.
        """
        self.controller = controller
        self.active_gesture: Optional[PointerSession] = None

    def handle_key_press(self, event):
        """
        Handles key press events: gesture modifiers first, then shortcuts.
        """
        if self._forward_key(event):
            event.accept()
            return

        key = event.key()
        modifiers = event.modifiers()
        ctrl = bool(modifiers & Qt.ControlModifier)
        shift = bool(modifiers & Qt.ShiftModifier)

        if ctrl and key == Qt.Key_Z and shift:
            self.controller.redo()
            event.accept()
        elif ctrl and key == Qt.Key_Z:
            self.controller.undo()
            event.accept()
        elif ctrl and key == Qt.Key_Y:
            self.controller.redo()
            event.accept()
        elif ctrl and key == Qt.Key_G:
            self.controller.toggle_guides()
            event.accept()
        elif ctrl and key == Qt.Key_E:
            self.controller.cycle_edge()
            event.accept()
        else:
            event.ignore()

    def handle_key_release(self, event):
        """
        Handles key release events; only modifier releases matter, and only
        while a gesture is running.
        """
        if self._forward_key(event):
            event.accept()
        else:
            event.ignore()

    def begin_gesture(self, session: PointerSession, event, pointer_id: int = 0) -> bool:
        """
        Starts a drag or resize gesture from a mouse press.

        Args:
            session (PointerSession): Gesture built by the controller.
            event (QMouseEvent): The mouse press event.
            pointer_id (int): Pointer identifier for multi-device input.

        Returns:
            bool: True if the gesture started.
        """
        if event.button() != Qt.LeftButton:
            return False
        if self.active_gesture is not None and self.active_gesture.active:
            return False
        if not session.start(PointerEvent.from_mouse_event(event, pointer_id)):
            return False
        self.active_gesture = session
        return True

    def handle_mouse_move(self, event, pointer_id: int = 0):
        """
        Handles mouse move events for the gesture in progress.

        Args:
            event (QMouseEvent): The mouse event.
        """
        if self.active_gesture is None:
            return
        self.active_gesture.pointer_move(PointerEvent.from_mouse_event(event, pointer_id))

    def handle_mouse_release(self, event, pointer_id: int = 0) -> bool:
        """
        Handles mouse release events, finishing the gesture in progress.

        Returns:
            bool: True if the gesture produced a history entry.
        """
        if self.active_gesture is None or event.button() != Qt.LeftButton:
            return False
        gesture = self.active_gesture
        try:
            return gesture.pointer_up(PointerEvent.from_mouse_event(event, pointer_id))
        finally:
            if not gesture.active:
                self.active_gesture = None

    def cancel_gesture(self):
        """Aborts the gesture in progress, e.g. when the window loses focus."""
        if self.active_gesture is None:
            return
        gesture = self.active_gesture
        self.active_gesture = None
        if gesture.active:
            gesture.key_event(KeyEvent(Key.ESCAPE, True))

    def _forward_key(self, event) -> bool:
        if self.active_gesture is None or not self.active_gesture.active:
            return False
        key_event = KeyEvent.from_key_event(event)
        if key_event.key == Key.OTHER:
            return False
        self.active_gesture.key_event(key_event)
        if not self.active_gesture.active:
            self.active_gesture = None
        return True
