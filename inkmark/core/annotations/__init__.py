"""
Annotation records, history timeline, transactions and persistence.
"""
from .models import Annotation, AnnotationType, TextAlign, DocumentSnapshot
from .history import HistoryTimeline, HistoryEntry, TimelineView, RecentEntry
from .transactions import operation, wrap_handler, instrument_handlers
from .persistence import AnnotationPersistence, SaveScheduler

__all__ = [
    'Annotation',
    'AnnotationType',
    'TextAlign',
    'DocumentSnapshot',
    'HistoryTimeline',
    'HistoryEntry',
    'TimelineView',
    'RecentEntry',
    'operation',
    'wrap_handler',
    'instrument_handlers',
    'AnnotationPersistence',
    'SaveScheduler'
]
