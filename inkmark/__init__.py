"""
Inkmark: annotation editing core with undo/redo history and snapping gestures.
"""
__version__ = "0.1.0"
