"""
Lifecycle hooks for record classes.

Every record class owns a ``HookChain``: one ordered list of callbacks per
lifecycle event. Chains are inherited by concatenation, so an ancestor's
callbacks run before a subclass's callbacks for the same event, and callbacks
registered on one class run in the order they were declared.

Callbacks are added three ways: by field declarations (e.g. a ``modified``
timestamp touches itself before insert and update), by decorating a method in
the class body with ``@hook("pre_delete")``, or by calling
``RecordClass.add_hook(event, callback)``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Tuple

POST_NEW = "post_new"
POST_FETCH = "post_fetch"
PRE_INSERT = "pre_insert"
POST_INSERT = "post_insert"
PRE_UPDATE = "pre_update"
POST_UPDATE = "post_update"
PRE_DELETE = "pre_delete"
POST_DELETE = "post_delete"

EVENTS: Tuple[str, ...] = (
    POST_NEW,
    POST_FETCH,
    PRE_INSERT,
    POST_INSERT,
    PRE_UPDATE,
    POST_UPDATE,
    PRE_DELETE,
    POST_DELETE,
)

HookCallback = Callable[[Any], Any]

_MARKER = "__dbrecords_hook_events__"


def check_event(event: str) -> str:
    if event not in EVENTS:
        raise ValueError(f"Unknown lifecycle hook '{event}'. Available: {', '.join(EVENTS)}")
    return event


def hook(*events: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Mark a record method as a callback for one or more lifecycle events.

    Example
    -------
        class Artist(Record):
            @hook("pre_delete")
            def refuse_if_locked(self):
                return not self["locked"]
    """
    for event in events:
        check_event(event)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, _MARKER, tuple(getattr(func, _MARKER, ())) + events)
        return func

    return decorator


def method_caller(method_name: str) -> HookCallback:
    """Build a callback that invokes ``record.<method_name>()``."""

    def call(record: Any) -> Any:
        return getattr(record, method_name)()

    call.__name__ = f"call_{method_name}"
    return call


def bound_caller(method_name: str, member: Any) -> HookCallback:
    """Build a callback that invokes the class-body ``member`` itself, even when a subclass overrides it."""

    def call(record: Any) -> Any:
        return member.__get__(record, type(record))()

    call.__name__ = f"call_{method_name}"
    return call


class HookChain:
    """Callbacks registered directly on one record class."""

    def __init__(self) -> None:
        self._callbacks: Dict[str, List[HookCallback]] = {event: [] for event in EVENTS}

    def add(self, event: str, callback: HookCallback) -> None:
        self._callbacks[check_event(event)].append(callback)

    def callbacks(self, event: str) -> List[HookCallback]:
        return list(self._callbacks[check_event(event)])

    def collect_decorated(self, namespace: Dict[str, Any]) -> None:
        """Register methods of a class body that carry the ``@hook`` marker."""
        for name, value in namespace.items():
            func = value.__func__ if isinstance(value, (staticmethod, classmethod)) else value
            for event in getattr(func, _MARKER, ()):
                self.add(event, bound_caller(name, value))

    def __len__(self) -> int:
        return sum(len(items) for items in self._callbacks.values())


def inherited_callbacks(cls: type, event: str) -> Iterator[HookCallback]:
    """Yield the callbacks for ``event`` from ``cls`` and its ancestors, ancestors first."""
    check_event(event)
    for klass in reversed(cls.__mro__):
        chain = klass.__dict__.get("_hook_chain")
        if chain is not None:
            yield from chain.callbacks(event)


__all__ = [
    "EVENTS",
    "POST_NEW",
    "POST_FETCH",
    "PRE_INSERT",
    "POST_INSERT",
    "PRE_UPDATE",
    "POST_UPDATE",
    "PRE_DELETE",
    "POST_DELETE",
    "HookCallback",
    "HookChain",
    "bound_caller",
    "hook",
    "inherited_callbacks",
    "method_caller",
]
