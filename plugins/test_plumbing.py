#!/usr/bin/env python3
"""
Tests for the registry, error handling, lifecycle plumbing and scheduler.

Verifies:
1. Plugin validation and duplicate rejection
2. Unknown ids raise instead of returning a placeholder
3. Failing hooks/handlers/ticks are reported and contained
4. Scheduler ticks at most once per frame interval
"""

import pytest

from glowgrid.__main__ import parse_value, parse_window
from glowgrid.errors import ErrorHandler, UnknownSimulationError
from glowgrid.life import LifeSimulation
from glowgrid.lifecycle import EventEmitter, LifecycleHooks, StateManager
from glowgrid.presets import SIMULATION_ORDER, get_simulation_info, list_simulations
from glowgrid.registry import SimulationRegistry, create_simulation, registry
from glowgrid.scheduler import AnimationScheduler
from glowgrid.surface import RenderSurface


def quiet_handler():
    return ErrorHandler(default_strategy=lambda *a, **kw: None)


# --- Registry ---

def test_builtin_registry():
    assert registry.list() == SIMULATION_ORDER
    for sim_id in SIMULATION_ORDER:
        sim = create_simulation(sim_id, RenderSurface(200, 200))
        assert sim.sim_id == sim_id
        assert registry.get(sim_id)["name"] == get_simulation_info(sim_id)["name"]
    assert [entry[0] for entry in list_simulations()] == SIMULATION_ORDER


def test_unknown_simulation_raises():
    with pytest.raises(UnknownSimulationError) as info:
        create_simulation("nope")
    assert isinstance(info.value, KeyError)
    assert "nope" in str(info.value)
    assert registry.get("nope") is None


def test_register_validates_plugins():
    reg = SimulationRegistry(quiet_handler())
    assert not reg.register("conway")
    assert not reg.register({"id": "", "api_version": "1.0.0", "create": LifeSimulation})
    assert not reg.register({"id": "x", "create": LifeSimulation})
    assert not reg.register({"id": "x", "api_version": "1.0.0", "create": None})
    assert reg.list() == []

    assert reg.register({"id": "x", "api_version": "1.0.0", "create": LifeSimulation})
    entry = reg.get("x")
    assert entry["name"] == "x"
    assert entry["capabilities"] == {} and entry["defaults"] == {}
    assert not reg.register({"id": "x", "api_version": "2.0.0", "create": LifeSimulation}), \
        "Duplicate ids are rejected"
    assert reg.get("x")["api_version"] == "1.0.0"
    assert isinstance(reg.create("x", RenderSurface(100, 100)), LifeSimulation)


def test_plugin_error_strategy_is_used():
    handler = quiet_handler()
    reg = SimulationRegistry(handler)
    seen = []
    reg.register({
        "id": "custom", "api_version": "1.0.0", "create": LifeSimulation,
        "error_strategy": lambda kind, **kw: seen.append((kind, kw["simulation_id"])),
    })
    handler.handle("hook", simulation_id="custom", scope="on_init")
    handler.handle("hook", simulation_id="other")
    assert seen == [("hook", "custom")]


# --- Error handler ---

def test_error_metrics():
    handler = quiet_handler()
    handler.handle("tick", error=RuntimeError("a"))
    handler.handle("hook", simulation_id="conway")
    handler.handle("hook", simulation_id="conway")
    metrics = handler.get_metrics()
    assert metrics["total"] == 3
    assert metrics["by_kind"] == {"tick": 1, "hook": 2}
    assert metrics["by_simulation"] == {"conway": {"hook": 2}}

    metrics["by_kind"]["tick"] = 99
    assert handler.get_metrics()["by_kind"]["tick"] == 1, "Metrics are a copy"
    handler.reset_metrics()
    assert handler.get_metrics()["total"] == 0


def test_failing_strategy_does_not_raise():
    def explode(*args, **kwargs):
        raise ValueError("strategy broke")

    handler = ErrorHandler(default_strategy=explode)
    handler.handle("hook", simulation_id="conway", error=RuntimeError("x"))
    assert handler.total == 1
    handler.set_default_strategy("not callable")
    assert handler.default_strategy is explode


# --- Lifecycle ---

def test_unknown_hook_name_rejected():
    hooks = LifecycleHooks("conway", quiet_handler())
    with pytest.raises(ValueError):
        hooks.register(on_explode=lambda: None)


def test_hook_reentry_is_skipped():
    hooks = LifecycleHooks("conway", quiet_handler())
    calls = []

    def on_update():
        calls.append(1)
        hooks.execute("on_update")

    hooks.register(on_update=on_update)
    hooks.execute("on_update")
    assert calls == [1]
    hooks.execute("on_update")
    assert calls == [1, 1], "Guard is released after each run"


def test_serializer_errors_are_reported():
    handler = quiet_handler()
    manager = StateManager("conway", {}, handler)
    assert manager.serialize(object()) == {}

    def bad_capture(sim):
        raise RuntimeError("capture")

    def bad_restore(sim, state):
        raise RuntimeError("restore")

    manager.register_serializer(bad_capture, bad_restore)
    assert manager.has_serializer
    assert manager.serialize(object()) == {}
    manager.deserialize(object(), {})
    assert handler.get_metrics()["by_kind"] == {"serialize": 1, "deserialize": 1}


def test_event_handlers_are_isolated():
    handler = quiet_handler()
    events = EventEmitter("conway", handler)
    received = []

    def broken(*args):
        raise RuntimeError("handler")

    def good(*args):
        received.append(args)

    events.on("cell_toggled", broken)
    events.on("cell_toggled", good)
    events.emit("cell_toggled", 1, 2)
    assert received == [(1, 2)]
    assert handler.get_metrics()["by_kind"]["event_handler"] == 1

    events.off("cell_toggled", good)
    events.emit("cell_toggled", 3, 4)
    assert received == [(1, 2)]


# --- Scheduler ---

def test_scheduler_frame_interval():
    ticks = []
    scheduler = AnimationScheduler(fps=10)
    assert not scheduler.pump(0.0), "Not started"
    scheduler.start(ticks.append)
    assert scheduler.pump(1000.0), "First pump always ticks"
    assert not scheduler.pump(1050.0)
    assert scheduler.pump(1100.0)
    assert ticks == [1000.0, 1100.0]
    scheduler.stop()
    assert not scheduler.pump(5000.0)
    assert ticks == [1000.0, 1100.0]


def test_scheduler_uses_clock_and_clamps_fps():
    now = [500.0]
    scheduler = AnimationScheduler(fps=1000, clock=lambda: now[0])
    assert scheduler.fps == 240
    seen = []
    scheduler.start(seen.append)
    scheduler.pump()
    assert seen == [500.0]
    scheduler.set_fps(0)
    assert scheduler.fps == 1


def test_scheduler_tick_errors_are_reported():
    handler = quiet_handler()
    scheduler = AnimationScheduler(fps=10, error_handler=handler)

    def broken(now):
        raise RuntimeError("tick")

    scheduler.start(broken)
    assert scheduler.pump(100.0)
    assert scheduler.is_running, "A failing tick does not stop the scheduler"
    assert handler.get_metrics()["by_kind"] == {"tick": 1}


# --- Command line helpers ---

def test_parse_cli_values():
    assert parse_value("true") is True
    assert parse_value("OFF") is False
    assert parse_value("12") == 12
    assert parse_value("0.5") == 0.5
    assert parse_value("RL") == "RL"
    assert parse_window("1200x800") == (1200, 800)
    with pytest.raises(ValueError):
        parse_window("1200")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
