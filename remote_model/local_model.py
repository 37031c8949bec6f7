"""
In-memory attribute store with change notification.

Events:
- "change" (changed) with a mapping of the keys that changed to their new values
- "change:<key>" (value, old_value) for every changed key
- "reset" () after reset()

Passing silent=True to any mutating call suppresses every event.
"""

import copy
from typing import Any, Dict, Iterable, Mapping, Union

from .events import EventEmitter


class LocalModel(EventEmitter):
    """Attribute bag owned by a single model instance."""

    def __init__(self, attributes: Mapping[str, Any] = None, options: Mapping[str, Any] = None):
        super().__init__()
        self.options = dict(options or {})
        self.attributes: Dict[str, Any] = {}
        if attributes:
            self.set(attributes, silent=True)

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def set(self, key: Union[str, Mapping[str, Any]], value: Any = None, silent: bool = False) -> 'LocalModel':
        """Set one key, or merge a mapping of keys, emitting change events for real changes."""
        if isinstance(key, Mapping):
            attrs = dict(key)
        else:
            attrs = {key: value}

        old = dict(self.attributes)
        self.attributes.update(attrs)

        if not silent:
            changed = {k: v for k, v in attrs.items() if k not in old or old[k] != v}
            for k, v in changed.items():
                self.emit('change:' + k, v, old.get(k))
            if changed:
                self.emit('change', changed)
        return self

    def unset(self, keys: Union[str, Iterable[str]], silent: bool = False) -> 'LocalModel':
        if isinstance(keys, str):
            keys = [keys]
        old = dict(self.attributes)
        removed = [k for k in keys if k in self.attributes]
        for k in removed:
            del self.attributes[k]

        if not silent and removed:
            for k in removed:
                self.emit('change:' + k, None, old[k])
            self.emit('change', {k: None for k in removed})
        return self

    def increment(self, key: str, amount: Union[int, float] = 1) -> 'LocalModel':
        if not isinstance(key, str):
            raise TypeError('Expected a string key to increment, got ' + repr(key))
        return self.set(key, self.get(key, 0) + amount)

    def reset(self, silent: bool = False) -> 'LocalModel':
        keys = list(self.attributes)
        self.attributes = {}
        if not silent:
            for k in keys:
                self.emit('change:' + k, None)
            self.emit('reset')
        return self

    def to_json(self) -> Dict[str, Any]:
        return copy.deepcopy(self.attributes)
