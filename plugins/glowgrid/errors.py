"""
Centralised Error Handling

Errors raised inside user-supplied code (lifecycle hooks, state
serializers, event handlers, scheduled ticks, per-agent steps) are caught
at the call boundary and routed here. A strategy decides how to report
them; the default writes an ERROR log record with the traceback. The
calling operation always carries on.

Unknown simulation ids are not routed here: they raise
UnknownSimulationError to the caller.
"""

import logging

logger = logging.getLogger(__name__)


class UnknownSimulationError(KeyError):
    """Requested simulation id is not registered."""

    def __init__(self, sim_id):
        super().__init__(sim_id)
        self.sim_id = sim_id

    def __str__(self):
        return f"Unknown simulation id: {self.sim_id!r}"


def log_strategy(kind, simulation_id=None, scope=None, message="", error=None):
    """Default strategy: one structured ERROR record per handled error."""
    sim_part = f"[{simulation_id}] " if simulation_id else ""
    scope_part = f"{scope}: " if scope else ""
    logger.error(
        "%s%s %s%s",
        sim_part, kind, scope_part, message,
        exc_info=(type(error), error, error.__traceback__) if error else None,
        extra={
            "error_kind": kind,
            "simulation_id": simulation_id,
            "error_scope": scope,
        },
    )


class ErrorHandler:
    """Routes handled errors to per-simulation or default strategies."""

    def __init__(self, default_strategy=None):
        self.strategies = {}
        self.default_strategy = default_strategy or log_strategy
        self.reset_metrics()

    def reset_metrics(self):
        self.total = 0
        self.by_kind = {}
        self.by_simulation = {}

    def set_default_strategy(self, strategy):
        """Replace the fallback strategy. Non-callables are ignored."""
        if callable(strategy):
            self.default_strategy = strategy

    def register_strategy(self, simulation_id, strategy):
        """Use strategy for errors tagged with simulation_id."""
        if not simulation_id or not callable(strategy):
            return
        self.strategies[simulation_id] = strategy

    def handle(self, kind, simulation_id=None, scope=None, message="",
               error=None):
        """Record and report one handled error. Never raises."""
        self.total += 1
        self.by_kind[kind] = self.by_kind.get(kind, 0) + 1
        if simulation_id:
            counts = self.by_simulation.setdefault(simulation_id, {})
            counts[kind] = counts.get(kind, 0) + 1

        strategy = self.strategies.get(simulation_id) or self.default_strategy
        try:
            strategy(kind, simulation_id=simulation_id, scope=scope,
                     message=message, error=error)
        except Exception:
            logger.exception(
                "Error strategy failed while reporting %s/%s (%s): %r",
                kind, scope, simulation_id, error,
            )

    def get_metrics(self):
        """Snapshot copy of the counters."""
        return {
            "total": self.total,
            "by_kind": dict(self.by_kind),
            "by_simulation": {k: dict(v) for k, v in self.by_simulation.items()},
        }


# Shared default instance used when a simulation is not given its own
error_handler = ErrorHandler()
