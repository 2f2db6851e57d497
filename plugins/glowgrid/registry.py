"""
Simulation Registry

Maps simulation ids to factories. A plugin is a dict:

    {"id": "conway", "api_version": "1.0.0", "create": LifeSimulation,
     "name": "Game of Life", "capabilities": {...}, "defaults": {...},
     "error_strategy": None}

Only id, api_version and create are required. The default registry is
pre-populated with the built-in simulations listed in presets.SIMULATIONS.
"""

import logging

from .errors import UnknownSimulationError, error_handler as _default_error_handler
from .gray_scott import ReactionDiffusion
from .langton import LangtonSimulation
from .life import LifeSimulation
from .presets import SIMULATIONS, SIMULATION_ORDER
from .termite import TermiteSimulation

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

FACTORIES = {
    "LifeSimulation": LifeSimulation,
    "TermiteSimulation": TermiteSimulation,
    "LangtonSimulation": LangtonSimulation,
    "ReactionDiffusion": ReactionDiffusion,
}


def _non_empty_str(value):
    return isinstance(value, str) and value.strip() != ""


class SimulationRegistry:

    def __init__(self, error_handler=None):
        self.plugins = {}
        self.error_handler = error_handler or _default_error_handler

    def register(self, plugin):
        """Validate and add a plugin.

        Returns:
            True if registered, False if rejected (reason is logged)
        """
        if not isinstance(plugin, dict):
            logger.warning("register: invalid plugin object %r", plugin)
            return False
        sim_id = plugin.get("id")
        if not _non_empty_str(sim_id):
            logger.warning("register: missing or invalid id")
            return False
        if not _non_empty_str(plugin.get("api_version")):
            logger.warning("register(%s): missing api_version", sim_id)
            return False
        create = plugin.get("create")
        if not callable(create):
            logger.warning("register(%s): missing create function", sim_id)
            return False
        if sim_id in self.plugins:
            logger.warning("register: duplicate id %r rejected", sim_id)
            return False

        canonical = {
            "id": sim_id,
            "api_version": plugin["api_version"],
            "name": plugin.get("name") or sim_id,
            "description": plugin.get("description", ""),
            "create": create,
            "capabilities": dict(plugin.get("capabilities") or {}),
            "defaults": dict(plugin.get("defaults") or {}),
            "error_strategy": plugin.get("error_strategy"),
        }
        self.plugins[sim_id] = canonical
        if canonical["error_strategy"] is not None:
            self.error_handler.register_strategy(sim_id, canonical["error_strategy"])
        logger.debug("Registered simulation %s", sim_id)
        return True

    def has(self, sim_id):
        return sim_id in self.plugins

    def get(self, sim_id):
        """Plugin entry for sim_id, or None."""
        return self.plugins.get(sim_id)

    def list(self):
        return list(self.plugins)

    def create(self, sim_id, surface=None, **kwargs):
        """Instantiate a registered simulation.

        Raises:
            UnknownSimulationError: sim_id is not registered
        """
        plugin = self.get(sim_id)
        if plugin is None:
            raise UnknownSimulationError(sim_id)
        return plugin["create"](surface, **kwargs)


def builtin_plugins():
    """Plugin dicts for the built-in simulations, in display order."""
    plugins = []
    for sim_id in SIMULATION_ORDER:
        info = SIMULATIONS[sim_id]
        plugins.append({
            "id": sim_id,
            "api_version": API_VERSION,
            "name": info["name"],
            "description": info["description"],
            "create": FACTORIES[info["factory"]],
            "capabilities": info["capabilities"],
            "defaults": info["defaults"],
        })
    return plugins


registry = SimulationRegistry()
for _plugin in builtin_plugins():
    registry.register(_plugin)


def register_simulation(plugin):
    return registry.register(plugin)


def create_simulation(sim_id, surface=None, **kwargs):
    """Create a simulation from the default registry.

    Raises:
        UnknownSimulationError: sim_id is not registered
    """
    return registry.create(sim_id, surface, **kwargs)
