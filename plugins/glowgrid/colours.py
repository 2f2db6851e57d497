"""
Colour Helpers

Colours travel through the engine as (r, g, b) tuples. Strings in the
"#rgb", "#rrggbb", "rgb(r, g, b)" and "rgba(r, g, b, a)" forms are accepted
wherever a colour is, and malformed input degrades to a fallback instead
of raising.
"""

import logging
import re

logger = logging.getLogger(__name__)

_RGB_RE = re.compile(
    r"rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([\d.]+)\s*)?\)"
)

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def _clamp_channel(v):
    return max(0, min(255, int(round(v))))


def parse_colour(colour):
    """
    Parse a colour into an (r, g, b) tuple.

    Args:
        colour: (r, g, b) / (r, g, b, a) sequence or a CSS-style string

    Returns:
        (r, g, b) tuple of ints, or None when the input is not understood
    """
    if isinstance(colour, (tuple, list)):
        if len(colour) < 3:
            return None
        try:
            return tuple(_clamp_channel(c) for c in colour[:3])
        except (TypeError, ValueError):
            return None
    if not isinstance(colour, str):
        return None

    text = colour.strip()
    if text.startswith("#"):
        hexpart = text[1:]
        try:
            if len(hexpart) == 3:
                return tuple(int(c + c, 16) for c in hexpart)
            if len(hexpart) == 6:
                return tuple(int(hexpart[i:i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            return None
        return None
    match = _RGB_RE.match(text)
    if match:
        return tuple(_clamp_channel(int(match.group(i))) for i in (1, 2, 3))
    return None


def format_colour(rgb, alpha=None):
    """CSS-style string for an (r, g, b) tuple."""
    r, g, b = rgb
    if alpha is None:
        return f"rgb({r}, {g}, {b})"
    return f"rgba({r}, {g}, {b}, {alpha})"


def apply_brightness(colour, brightness):
    """Scale a colour by a brightness multiplier.

    Malformed colours are returned unchanged (logged at debug level).
    """
    rgb = parse_colour(colour)
    if rgb is None:
        logger.debug("Unparseable colour %r, leaving unchanged", colour)
        return colour
    return tuple(_clamp_channel(c * brightness) for c in rgb)


def interpolate_colour(colour_a, colour_b, factor):
    """Linear blend from colour_a (factor 0) to colour_b (factor 1).

    Falls back to colour_a when either side cannot be parsed.
    """
    a = parse_colour(colour_a)
    b = parse_colour(colour_b)
    if a is None or b is None:
        return colour_a
    f = max(0.0, min(1.0, factor))
    return tuple(_clamp_channel(ca + (cb - ca) * f) for ca, cb in zip(a, b))
