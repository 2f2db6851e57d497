"""
Interactive Pygame Viewer

Opens a resizable window and drives one simulation at a time through its
scheduler: pump() runs animate() at most once per frame, animate()
updates when the simulation's interval has elapsed and redraws every
frame.

Controls:
  SPACE       Start / Pause
  R           Randomize
  C           Clear
  1-4         Switch simulation
  + / -       Speed up / slow down
  [ / ]       Dimmer / brighter
  D           Toggle direction indicators
  A           Add an agent under the pointer
  H           Toggle HUD overlay
  S           Save screenshot
  Q / ESC     Quit
  Mouse L     Drag to toggle cells
"""

import logging
import os
import time

import pygame

from .presets import SIMULATION_ORDER, get_simulation_info
from .registry import create_simulation
from .scheduler import perf_ms

logger = logging.getLogger(__name__)


def screenshots_dir():
    path = os.path.join(
        os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
        "screenshots"
    )
    os.makedirs(path, exist_ok=True)
    return path


class Viewer:

    def __init__(self, width=1000, height=700, start_sim="conway", speed=None,
                 density=None, params=None):
        self.width = width
        self.height = height
        self.speed = speed
        self.density = density
        self.params = dict(params or {})
        self.show_hud = True
        self.running = True
        self.sim = None
        self.sim_id = None
        self.hud_font = None
        self._switch(start_sim)

    def _switch(self, sim_id):
        """Replace the current simulation, keeping speed/brightness."""
        old = self.sim
        sim = create_simulation(sim_id)
        sim.init(self.width, self.height)
        if old is not None:
            sim.set_speed(old.speed)
            sim.set_brightness(old.brightness)
            sim.set_show_direction_indicator(old.show_direction_indicator)
            old.destroy()
        else:
            if self.speed is not None:
                sim.set_speed(self.speed)
            if self.params:
                sim.set_params(**self.params)
        if self.density is not None:
            sim.randomize(self.density)
        self.sim = sim
        self.sim_id = sim_id
        sim.start()
        logger.info("Switched to %s", sim_id)

    def _draw_hud(self, screen):
        if not self.show_hud:
            return
        stats = self.sim.get_stats()
        info = get_simulation_info(self.sim_id) or {}
        line = (f"{info.get('name', self.sim_id)}  |  Gen: {stats['generation']:,}  |  "
                f"Cells: {stats['cell_count']:,}  |  Speed: {self.sim.speed}  |  "
                f"FPS: {stats['fps']}")
        if not self.sim.is_running:
            line = "[PAUSED]  " + line

        padding = 6
        bg_height = 24
        bg_surface = pygame.Surface((self.width, bg_height), pygame.SRCALPHA)
        bg_surface.fill((0, 0, 0, 140))
        screen.blit(bg_surface, (0, 0))

        text_surface = self.hud_font.render(line, True, (210, 215, 225))
        screen.blit(text_surface, (padding + 4, padding))

    def _save_screenshot(self):
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        directory = screenshots_dir()
        path = os.path.join(directory, f"glowgrid_{self.sim_id}_{timestamp}.png")
        frame = self.sim.draw()
        if frame is None:
            return
        pygame.image.save(frame, path)
        pygame.image.save(frame, os.path.join(directory, "latest.png"))
        print(f"Screenshot saved: {path}")

    def _handle_mouse(self, event):
        sim = self.sim
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            sim.handle_mouse_down(*event.pos)
        elif event.type == pygame.MOUSEMOTION:
            sim.handle_mouse_move(*event.pos)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            sim.handle_mouse_up()
        elif event.type == pygame.WINDOWLEAVE:
            sim.handle_mouse_up()

    def run(self):
        """Main viewer loop."""
        pygame.init()

        screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
        pygame.display.set_caption("glowgrid")
        clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)

        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.KEYDOWN:
                    self._handle_keydown(event)
                elif event.type == pygame.VIDEORESIZE:
                    self.width, self.height = event.w, event.h
                    self.sim.resize_preserve_state(self.width, self.height)
                else:
                    self._handle_mouse(event)

            now = perf_ms()
            if self.sim.is_running:
                self.sim.scheduler.pump(now)
                frame = self.sim.surface.surface
            else:
                # Paused: still repaint so toggles show up
                frame = self.sim.draw(now)

            screen.fill((0, 0, 0))
            if frame is not None:
                screen.blit(frame, (0, 0))
            self._draw_hud(screen)

            pygame.display.flip()
            clock.tick(60)

        self.sim.destroy()
        pygame.quit()

    def _handle_keydown(self, event):
        key = event.key
        sim = self.sim

        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False

        elif key == pygame.K_SPACE:
            if sim.is_running:
                sim.pause()
            else:
                sim.start()

        elif key == pygame.K_r:
            sim.randomize(self.density)

        elif key == pygame.K_c:
            sim.clear()

        elif key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            sim.set_speed(sim.speed + 5)

        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            sim.set_speed(sim.speed - 5)

        elif key == pygame.K_LEFTBRACKET:
            sim.set_brightness(round(sim.brightness - 0.1, 2))

        elif key == pygame.K_RIGHTBRACKET:
            sim.set_brightness(round(sim.brightness + 0.1, 2))

        elif key == pygame.K_d:
            sim.set_show_direction_indicator(not sim.get_show_direction_indicator())

        elif key == pygame.K_a:
            if hasattr(sim, "add_actor_at"):
                sim.add_actor_at(*pygame.mouse.get_pos())
            else:
                logger.warning("%s has no agents to add", self.sim_id)

        elif key == pygame.K_h:
            self.show_hud = not self.show_hud

        elif key == pygame.K_s:
            self._save_screenshot()

        # Simulation selection (1-4)
        elif pygame.K_1 <= key <= pygame.K_9:
            idx = key - pygame.K_1
            if idx < len(SIMULATION_ORDER):
                self._switch(SIMULATION_ORDER[idx])
