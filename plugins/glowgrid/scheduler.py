"""
Frame Scheduler

Explicit replacement for a self-rescheduling animation callback. The host
loop calls pump() as often as it likes; the tick callback runs at most
once per frame interval. stop() never interrupts a tick in flight, it only
prevents the next one.
"""

import time

from .errors import error_handler as _default_error_handler


def perf_ms():
    """Monotonic clock in milliseconds."""
    return time.perf_counter() * 1000.0


class AnimationScheduler:

    def __init__(self, fps=60, clock=None, error_handler=None):
        self.clock = clock or perf_ms
        self.error_handler = error_handler or _default_error_handler
        self.tick = None
        self.is_running = False
        self.last_time = 0.0
        self.set_fps(fps)

    def set_fps(self, fps):
        self.fps = max(1, min(240, fps))
        self.frame_interval = 1000.0 / self.fps

    def start(self, tick):
        """Begin scheduling tick(now_ms). No-op when already running."""
        if self.is_running:
            return
        self.tick = tick
        self.is_running = True
        self.last_time = 0.0

    def stop(self):
        self.is_running = False

    def pump(self, now=None):
        """Run the tick if a frame interval has elapsed.

        Returns:
            True when the tick ran
        """
        if not self.is_running or self.tick is None:
            return False
        if now is None:
            now = self.clock()
        if not self.last_time:
            # First pump always ticks
            self.last_time = now - self.frame_interval
        if now - self.last_time < self.frame_interval:
            return False
        self.last_time = now
        try:
            self.tick(now)
        except Exception as exc:
            self.error_handler.handle(
                "tick", scope="AnimationScheduler.pump",
                message="Error in scheduled tick", error=exc,
            )
        return True
