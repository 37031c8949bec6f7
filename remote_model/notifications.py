"""
One dispatch point for request lifecycle notifications.

Every phase ("sync", "success", "fail") goes to three sinks in a fixed order:
hook table, log formatter, event bus.
"""

from typing import Any, Callable, Mapping, Optional, Sequence

SYNC = 'sync'
SUCCESS = 'success'
FAIL = 'fail'

PHASES = (SYNC, SUCCESS, FAIL)


class HookTable:
    """Looks up optional hook callables by phase and calls them with the model."""

    def __init__(self, owner: Any, hooks: Optional[Mapping[str, Callable]] = None):
        self.owner = owner
        self.hooks = hooks or {}

    def __call__(self, phase: str, payload: Mapping[str, Any]):
        hook = self.hooks.get(phase)
        if callable(hook):
            hook(self.owner, **payload)


class Notifier:
    def __init__(self, hook_sink: Callable, log_sink: Callable, event_sink: Callable):
        self.hook_sink = hook_sink
        self.log_sink = log_sink
        self.event_sink = event_sink

    def dispatch(self, phase: str, payload: Mapping[str, Any], event_args: Sequence[Any]):
        if phase not in PHASES:
            raise ValueError(f"Unknown notification phase: {phase}")
        self.hook_sink(phase, payload)
        self.log_sink(phase, payload)
        self.event_sink(phase, *event_args)
