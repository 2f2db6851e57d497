"""
Simulation Lifecycle Plumbing

  - LifecycleHooks: named notification hooks (on_init, on_start, ...)
  - StateManager:   observable state dict + injectable state serializer
  - EventEmitter:   simple named events with handler isolation

Everything user-supplied runs inside a try block; failures go to the
ErrorHandler and never abort the operation that triggered them.
"""

import logging

from .errors import error_handler as _default_error_handler

logger = logging.getLogger(__name__)

HOOK_NAMES = (
    "on_init", "on_start", "on_pause", "on_reset", "on_clear",
    "on_resize", "on_update", "on_draw", "on_destroy",
)


class LifecycleHooks:
    """Per-simulation hook table. Hooks are non-reentrant notifications."""

    def __init__(self, simulation_id, error_handler=None):
        self.simulation_id = simulation_id
        self.error_handler = error_handler or _default_error_handler
        self._hooks = {name: self._default_hook(name) for name in HOOK_NAMES}
        self._running = set()

    def _default_hook(self, name):
        verb = name[3:]
        sim_id = self.simulation_id

        def hook(*_args):
            logger.debug("Simulation %s %s", sim_id, verb)
        return hook

    def register(self, **hooks):
        """Override hooks by name, e.g. register(on_update=fn)."""
        for name, fn in hooks.items():
            if name not in HOOK_NAMES:
                raise ValueError(f"Unknown lifecycle hook: {name}")
            self._hooks[name] = fn if fn is not None else self._default_hook(name)

    def execute(self, name, *args):
        """Run one hook. Errors are reported, re-entry is skipped."""
        hook = self._hooks.get(name)
        if hook is None:
            return None
        if name in self._running:
            logger.warning("Hook %s re-entered for %s; skipped",
                           name, self.simulation_id)
            return None
        self._running.add(name)
        try:
            return hook(*args)
        except Exception as exc:
            self.error_handler.handle(
                "hook", simulation_id=self.simulation_id, scope=name,
                message="Error executing lifecycle hook", error=exc,
            )
            return None
        finally:
            self._running.discard(name)


class StateManager:
    """Observable simulation state plus a capture/restore serializer."""

    def __init__(self, simulation_id=None, initial_state=None,
                 error_handler=None):
        self.simulation_id = simulation_id
        self.state = dict(initial_state or {})
        self.subscribers = []
        self.capture = None
        self.restore = None
        self.error_handler = error_handler or _default_error_handler

    def get_state(self):
        return dict(self.state)

    def set_state(self, **changes):
        self.state.update(changes)
        self.notify_subscribers()

    def register_serializer(self, capture, restore):
        """
        Args:
            capture: fn(sim) -> dict of extra state to keep
            restore: fn(sim, state) applying a captured dict to sim
        """
        self.capture = capture
        self.restore = restore

    @property
    def has_serializer(self):
        return self.capture is not None or self.restore is not None

    def serialize(self, sim):
        if self.capture is None:
            return {}
        try:
            return self.capture(sim) or {}
        except Exception as exc:
            self.error_handler.handle(
                "serialize", simulation_id=self.simulation_id,
                scope="StateManager.serialize",
                message="Error capturing simulation state", error=exc,
            )
            return {}

    def deserialize(self, sim, state):
        if self.restore is None:
            return
        try:
            self.restore(sim, state)
        except Exception as exc:
            self.error_handler.handle(
                "deserialize", simulation_id=self.simulation_id,
                scope="StateManager.deserialize",
                message="Error restoring simulation state", error=exc,
            )

    def subscribe(self, callback):
        """Register callback(state). Returns an unsubscribe function."""
        self.subscribers.append(callback)

        def unsubscribe():
            if callback in self.subscribers:
                self.subscribers.remove(callback)
        return unsubscribe

    def notify_subscribers(self):
        for callback in list(self.subscribers):
            try:
                callback(self.get_state())
            except Exception as exc:
                self.error_handler.handle(
                    "subscriber", simulation_id=self.simulation_id,
                    scope="StateManager.notify_subscribers",
                    message="Error in state subscriber", error=exc,
                )


class EventEmitter:
    """Named events; one failing handler does not stop the others."""

    def __init__(self, simulation_id=None, error_handler=None):
        self.simulation_id = simulation_id
        self.events = {}
        self.error_handler = error_handler or _default_error_handler

    def on(self, event_name, handler):
        self.events.setdefault(event_name, []).append(handler)

    def off(self, event_name, handler):
        handlers = self.events.get(event_name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def emit(self, event_name, *args):
        for handler in list(self.events.get(event_name, ())):
            try:
                handler(*args)
            except Exception as exc:
                self.error_handler.handle(
                    "event_handler", simulation_id=self.simulation_id,
                    scope=event_name, message="Error in event handler",
                    error=exc,
                )
