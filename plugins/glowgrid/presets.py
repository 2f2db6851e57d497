"""
Simulation Defaults and Registry Metadata

Central constants shared by every simulation plus one metadata entry per
built-in simulation. The "factory" field names the class that the registry
instantiates for that id.
"""

SIMULATION_DEFAULTS = {
    "speed_min": 1,
    "speed_max": 60,
    "speed_default": 30,
    "cell_size_default": 10,
    # Fade/brightness behaviour
    "fade_out_cycles_default": 5,
    "fade_decrement_default": 0.2,
    # Randomisation
    "coverage_default": 0.3,
    # Surface sizing
    "target_cells": 100,
    "fallback_width": 800,
    "fallback_height": 600,
    "max_dimension": 5000,
    # FPS is recomputed once per this many frames
    "fps_window": 30,
}

TERMITE_DEFAULTS = {
    "max_termites_default": 50,
    "move_speed": 2,
    "random_turn_probability": 0.1,
}

ACTOR_DEFAULTS = {
    "trail_length": 30,
    "trail_enabled": True,
    "trail_opacity": 0.8,
    "max_actors": 100,
}

SLIDERS = {
    "speed": {"min": 1, "max": 60, "step": 1, "default": 30},
    "termites": {"min": 1, "max": 100, "step": 1, "default": 50},
    "brightness": {"min": 0.1, "max": 2.0, "step": 0.1, "default": 1.0},
}

SIMULATIONS = {
    "conway": {
        "name": "Game of Life",
        "description": "Toroidal B3/S23 life with fade-to-black trails",
        "factory": "LifeSimulation",
        "capabilities": {"grid_based": True},
        "defaults": {"speed": 30, "cell_size": 10},
    },
    "termite": {
        "name": "Termites",
        "description": "Stigmergic wood-chip sorting by wandering agents",
        "factory": "TermiteSimulation",
        "capabilities": {"grid_based": True, "actor_based": True},
        "defaults": {"speed": 30, "cell_size": 10},
    },
    "langton": {
        "name": "Langton's Ant",
        "description": "Turning-rule ant flipping cells as it walks",
        "factory": "LangtonSimulation",
        "capabilities": {"grid_based": True, "actor_based": True},
        "defaults": {"speed": 30, "cell_size": 10},
    },
    "reaction": {
        "name": "Reaction-Diffusion",
        "description": "Gray-Scott U/V chemistry on a toroidal grid",
        "factory": "ReactionDiffusion",
        "capabilities": {"grid_based": True, "continuous": True},
        "defaults": {"speed": 30, "cell_size": 10},
    },
}

# Number keys 1-4 in the viewer map here
SIMULATION_ORDER = ["conway", "termite", "langton", "reaction"]


def get_simulation_info(sim_id):
    """Get a metadata entry by id. Returns None if not found."""
    return SIMULATIONS.get(sim_id)


def list_simulations():
    """Return list of (id, name, description) in display order."""
    return [(k, SIMULATIONS[k]["name"], SIMULATIONS[k]["description"])
            for k in SIMULATION_ORDER if k in SIMULATIONS]
