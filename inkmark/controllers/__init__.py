"""
Application controllers connecting user input to the editing core.
"""
from .input_handler import UserInputHandler
from .annotation_controller import AnnotationController, TargetView

__all__ = [
    'UserInputHandler',
    'AnnotationController',
    'TargetView'
]
