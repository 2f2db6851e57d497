"""
Agents

Plain agent records shared by the agent-based simulations:
  - GridActor:       discrete (col, row) position + facing 0..3 (up, right,
                     down, left), plus the arc it is currently rendering
  - ContinuousActor: pixel (x, y) position + heading angle in radians and
                     a carry flag

Both keep a trail of (x, y, age) samples, oldest first.
"""

import math

# Unit steps for direction 0..3 as (d_col, d_row)
DIRECTION_STEPS = ((0, -1), (1, 0), (0, 1), (-1, 0))

# Angle of the midpoint of each cell edge around the cell centre
# 0: top, 1: right, 2: bottom, 3: left (screen y points down)
EDGE_ANGLES = (-math.pi / 2, 0.0, math.pi / 2, math.pi)


def edge_angle(edge):
    return EDGE_ANGLES[edge % 4]


class Actor:

    def __init__(self, x=0, y=0, trail=None, is_carrying=False):
        self.x = x
        self.y = y
        self.trail = list(trail) if trail else []
        self.is_carrying = bool(is_carrying)

    def to_dict(self):
        return {
            "x": self.x,
            "y": self.y,
            "trail": [tuple(p) for p in self.trail],
            "is_carrying": self.is_carrying,
        }


class ContinuousActor(Actor):

    def __init__(self, x=0.0, y=0.0, angle=0.0, **kwargs):
        super().__init__(float(x), float(y), **kwargs)
        self.angle = float(angle)

    def advance(self, distance):
        self.x += math.cos(self.angle) * distance
        self.y += math.sin(self.angle) * distance

    def wrap(self, width, height):
        """Toroidal wrap on a width x height pixel surface."""
        self.x %= width
        self.y %= height

    def to_dict(self):
        data = super().to_dict()
        data["angle"] = self.angle
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(data.get("x", 0.0), data.get("y", 0.0),
                   angle=data.get("angle", 0.0), trail=data.get("trail"),
                   is_carrying=data.get("is_carrying", False))


class ArcPath:
    """Quarter-circle the ant sweeps through its cell between updates."""

    def __init__(self, cx, cy, radius, start_angle, sweep):
        self.cx = cx
        self.cy = cy
        self.radius = radius
        self.start_angle = start_angle
        self.sweep = sweep

    @property
    def end_angle(self):
        return self.start_angle + self.sweep

    def point_at(self, t):
        theta = self.start_angle + self.sweep * t
        return (self.cx + self.radius * math.cos(theta),
                self.cy + self.radius * math.sin(theta))

    def heading_at(self, t):
        """Direction of travel along the arc at fraction t."""
        theta = self.start_angle + self.sweep * t
        s = 1.0 if self.sweep >= 0 else -1.0
        return math.atan2(math.cos(theta) * s, -math.sin(theta) * s)

    def samples(self, count):
        """count + 1 evenly spaced points from start to end."""
        return [self.point_at(i / count) for i in range(count + 1)]


class GridActor(Actor):

    def __init__(self, col=0, row=0, direction=0, **kwargs):
        super().__init__(int(col), int(row), **kwargs)
        self.direction = int(direction) % 4
        self.render_path = None

    # Grid naming over the shared x/y storage
    @property
    def col(self):
        return self.x

    @col.setter
    def col(self, value):
        self.x = value

    @property
    def row(self):
        return self.y

    @row.setter
    def row(self, value):
        self.y = value

    def turn(self, right):
        self.direction = (self.direction + (1 if right else 3)) % 4

    def step(self, cols, rows):
        """Move one cell forward with toroidal wrap."""
        dc, dr = DIRECTION_STEPS[self.direction]
        self.col = (self.col + dc) % cols
        self.row = (self.row + dr) % rows

    def to_dict(self):
        data = super().to_dict()
        data["direction"] = self.direction
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(data.get("x", 0), data.get("y", 0),
                   direction=data.get("direction", 0),
                   trail=data.get("trail"))
