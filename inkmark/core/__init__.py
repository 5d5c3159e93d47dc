"""
Core editing logic for Inkmark.
"""
from .session import EditorSession

__all__ = ['EditorSession']
