"""
Minimal event channel shared by the attribute store and the remote model.
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventEmitter:
    """Named events with ordered listeners, invoked synchronously."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}

    def on(self, event: str, listener: Callable) -> 'EventEmitter':
        self._listeners.setdefault(event, []).append(listener)
        return self

    def once(self, event: str, listener: Callable) -> 'EventEmitter':
        def _once(*args):
            self.off(event, _once)
            listener(*args)
        _once.listener = listener
        return self.on(event, _once)

    def off(self, event: str, listener: Callable = None) -> 'EventEmitter':
        """Remove one listener, or every listener of the event when none is given."""
        if listener is None:
            self._listeners.pop(event, None)
            return self
        listeners = self._listeners.get(event, [])
        for registered in list(listeners):
            if registered is listener or getattr(registered, 'listener', None) is listener:
                listeners.remove(registered)
                break
        return self

    def listeners(self, event: str) -> List[Callable]:
        return list(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of the event; returns False when nobody listens."""
        listeners = self.listeners(event)
        if not listeners:
            return False
        logger.debug(f"emit {event} to {len(listeners)} listener(s)")
        for listener in listeners:
            listener(*args)
        return True
