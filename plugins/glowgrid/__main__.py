"""
glowgrid Viewer - Entry Point

Usage:
    python -m glowgrid [simulation] [--window WxH] [--speed N] [--density D]
                       [--set key=value ...] [--snap N] [--list]
                       [--log-level LEVEL]

Examples:
    python -m glowgrid
    python -m glowgrid termite --window 1200x800
    python -m glowgrid langton --set ants=5 --speed 60
    python -m glowgrid reaction --snap 500

Simulations:
    conway    - Toroidal Game of Life with fade-to-black (default)
    termite   - Stigmergic wood-chip sorting
    langton   - Langton's ant
    reaction  - Gray-Scott reaction-diffusion

Use --list to see all simulations.
"""

import logging
import os
import sys

from .presets import SIMULATION_ORDER, list_simulations


def parse_value(text):
    """Best-effort conversion of a --set value to bool/int/float/str."""
    lowered = text.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            pass
    return text


def parse_window(text):
    parts = text.lower().split("x")
    if len(parts) != 2:
        raise ValueError(f"Window must look like WxH, got {text!r}")
    return int(parts[0]), int(parts[1])


def snap(sim_id, width, height, steps, speed=None, density=None, params=None):
    """Headless mode: run N updates, save a PNG, exit."""
    from PIL import Image

    from .registry import create_simulation
    from .surface import RenderSurface
    from .viewer import screenshots_dir

    sim = create_simulation(sim_id, RenderSurface(width, height))
    sim.init(width, height)
    if speed is not None:
        sim.set_speed(speed)
    if params:
        sim.set_params(**params)
    if density is not None:
        sim.randomize(density)

    print(f"  {sim_id}: running {steps} steps...", end="", flush=True)
    sim.step_n(steps)
    sim.draw()
    rgb = sim.surface.to_array()

    directory = screenshots_dir()
    path = os.path.join(directory, f"glowgrid_{sim_id}.png")
    img = Image.fromarray(rgb)
    img.save(path)
    img.save(os.path.join(directory, "latest.png"))
    print(f" saved: {path}")
    return path


def main(argv=None):
    sim_id = "conway"
    win_w, win_h = 1000, 700
    speed = None
    density = None
    params = {}
    snap_steps = 0
    log_level = "WARNING"

    args = sys.argv[1:] if argv is None else list(argv)
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--window" and i + 1 < len(args):
            win_w, win_h = parse_window(args[i + 1])
            i += 2
        elif arg == "--speed" and i + 1 < len(args):
            speed = int(args[i + 1])
            i += 2
        elif arg == "--density" and i + 1 < len(args):
            density = float(args[i + 1])
            i += 2
        elif arg == "--set" and i + 1 < len(args):
            key, sep, value = args[i + 1].partition("=")
            if not sep:
                print(f"--set expects key=value, got {args[i + 1]!r}")
                return 2
            params[key.strip()] = parse_value(value.strip())
            i += 2
        elif arg == "--snap" and i + 1 < len(args):
            snap_steps = int(args[i + 1])
            i += 2
        elif arg == "--log-level" and i + 1 < len(args):
            log_level = args[i + 1].upper()
            i += 2
        elif arg == "--list":
            print("\nAvailable simulations:\n")
            for key, name, desc in list_simulations():
                print(f"  {key:10s} {name:20s} {desc}")
            print()
            return 0
        elif arg in ("--help", "-h"):
            print(__doc__)
            return 0
        elif arg in SIMULATION_ORDER:
            sim_id = arg
            i += 1
        else:
            print(f"Unknown argument: {arg}")
            print("Use --list to see available simulations")
            return 2

    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if snap_steps > 0:
        print(f"Headless snap mode: {sim_id} @ {win_w}x{win_h}, {snap_steps} steps")
        snap(sim_id, win_w, win_h, snap_steps, speed, density, params)
        return 0

    from .viewer import Viewer

    print("Starting glowgrid viewer")
    print(f"  Simulation: {sim_id}")
    print(f"  Window: {win_w}x{win_h}")
    print()

    viewer = Viewer(width=win_w, height=win_h, start_sim=sim_id, speed=speed,
                    density=density, params=params)
    viewer.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
