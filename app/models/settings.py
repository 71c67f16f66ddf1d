"""
settings.py - Centralized tolerances and defaults for the wire engine.

This file is the SINGLE SOURCE OF TRUTH for:
- GRID_SIZE: Used for snapping and for deriving pin offsets
- Geometric tolerances used by topology, break/mend and move validation
- Default wire styling (color, net id, neutral SWP color)

EngineSettings bundles the constants so a caller (or a test) can run the
engine on a different grid without touching module state.
"""

from dataclasses import dataclass

# Grid settings
GRID_SIZE = 24                 # Base snapping grid; two-pin half-span is 2 * GRID_SIZE

# Matching tolerances (scene units)
ENDPOINT_TOLERANCE = 0.9       # Pin-to-wire-endpoint match when detecting embedded parts
PIN_EPSILON = 0.75             # Two pins closer than this coincide
SPAN_TOLERANCE = 0.5           # Slack when testing a component span against an SWP span
ENDPOINT_EPSILON = 1e-2        # A pin this close to a segment end is not "interior"
BREAK_DISTANCE = 20.0          # Max pin-to-segment distance for a general interior break
STROKE_MATCH_DISTANCE = 12.0   # Beyond this, stroke provenance falls back to overlap

# Wire styling defaults
DEFAULT_WIRE_COLOR = "#c7f284"
NEUTRAL_SWP_COLOR = "#FFFFFF"  # SWP color when contributing wires disagree
DEFAULT_NET_ID = "default"
DEFAULT_WIRE_WIDTH = 0.25      # Theme wire width in mm
DEFAULT_WIRE_STYLE = "solid"


@dataclass(frozen=True)
class EngineSettings:
    """
    Immutable bundle of grid and tolerance settings.

    The default instance mirrors the module constants. Tests commonly use
    ``EngineSettings(grid_size=5)`` so that two-pin parts span 20 units.
    """

    grid_size: float = GRID_SIZE
    endpoint_tolerance: float = ENDPOINT_TOLERANCE
    pin_epsilon: float = PIN_EPSILON
    span_tolerance: float = SPAN_TOLERANCE
    endpoint_epsilon: float = ENDPOINT_EPSILON
    break_distance: float = BREAK_DISTANCE
    stroke_match_distance: float = STROKE_MATCH_DISTANCE
    neutral_swp_color: str = NEUTRAL_SWP_COLOR
    default_wire_color: str = DEFAULT_WIRE_COLOR

    def __post_init__(self):
        if self.grid_size <= 0:
            raise ValueError(f"grid_size must be positive, got {self.grid_size}")

    def snap(self, value: float) -> float:
        """Snap a scalar to the nearest grid line."""
        return round(value / self.grid_size) * self.grid_size


DEFAULT_SETTINGS = EngineSettings()
