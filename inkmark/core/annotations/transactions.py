"""
History transactions around document-mutating handlers.

Handlers are wrapped so that each call opens a history step, runs, and
commits + schedules an autosave only when it succeeds. Handlers that do not
touch the annotation document declare it with ``@operation(mutates_document=False)``
and are never wrapped.
"""
import functools
import inspect
import logging
from typing import Any, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

MUTATES_DOCUMENT_ATTR = "mutates_document"


def operation(mutates_document: bool = True, label: Optional[str] = None) -> Callable[[F], F]:
    """
    Declare a handler's history behaviour.

    Args:
        mutates_document: False for navigation, zoom, tool selection and
            history operations that must not create timeline entries
        label: Transaction label; defaults to the handler name
    """
    def decorate(fn: F) -> F:
        setattr(fn, MUTATES_DOCUMENT_ATTR, mutates_document)
        if label is not None:
            setattr(fn, "history_label", label)
        return fn
    return decorate


def mutates_document(fn: Callable[..., Any]) -> bool:
    """Undeclared handlers are treated as document-mutating."""
    return getattr(fn, MUTATES_DOCUMENT_ATTR, True)


def wrap_handler(name: str, fn: Callable[..., Any], history, save_scheduler) -> Callable[..., Any]:
    """
    Wrap a state-mutating handler with history and autosave.

    - Begins a history step labelled after the handler
    - Commits and schedules a save ONLY on success
    - Never commits when the handler raises; the error propagates unchanged

    Coroutine handlers get an awaitable back; the transaction stays open until
    the await finishes.

    Args:
        name: Handler name, used as the default label
        fn: Handler to wrap
        history: HistoryTimeline receiving begin/commit
        save_scheduler: Object with ``schedule(immediate=False)``

    Returns:
        The wrapped handler, or ``fn`` itself when it does not mutate the document
    """
    if not mutates_document(fn):
        return fn

    label = getattr(fn, "history_label", name)

    def _finish():
        history.commit()
        save_scheduler.schedule()

    async def _await_then_commit(awaitable):
        value = await awaitable
        _finish()
        return value

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        history.begin(label)
        out = fn(*args, **kwargs)
        if inspect.isawaitable(out):
            return _await_then_commit(out)
        _finish()
        return out

    return wrapper


def instrument_handlers(handlers: Dict[str, Callable[..., Any]], history,
                        save_scheduler) -> Dict[str, Callable[..., Any]]:
    """Wrap every handler of a name -> callable mapping."""
    wrapped = {}
    for name, fn in handlers.items():
        wrapped[name] = wrap_handler(name, fn, history, save_scheduler)
        if wrapped[name] is fn:
            logger.debug("Handler %s does not mutate the document; not wrapped", name)
    return wrapped
