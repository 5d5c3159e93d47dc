"""
Live document state.
"""
from .state import DocumentState

__all__ = ['DocumentState']
