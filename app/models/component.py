"""
ComponentData - Pure Python data model for schematic components.

This module contains no Qt dependencies. All positions are represented as
tuples (x, y) rather than QPointF.

Component types use display names as canonical identifiers:
'Resistor', 'Capacitor', 'Inductor', 'Diode', 'Battery', 'AC Source',
'BJT NPN', 'BJT PNP', 'Ground'

Pins are never stored; they are derived from the type, the rotation and
the grid size.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .settings import GRID_SIZE
from .wire import Point

# Component type definitions using display names (canonical)
COMPONENT_TYPES = [
    "Resistor",
    "Capacitor",
    "Inductor",
    "Diode",
    "Battery",
    "AC Source",
    "BJT NPN",
    "BJT PNP",
    "Ground",
]

# Parts with two collinear pins. Only these can be embedded in a wire run.
TWO_PIN_TYPES = frozenset(["Resistor", "Capacitor", "Inductor", "Diode", "Battery", "AC Source"])

# Mapping of component types to reference-designator prefixes
SPICE_SYMBOLS = {
    "Resistor": "R",
    "Capacitor": "C",
    "Inductor": "L",
    "Diode": "D",
    "Battery": "V",
    "AC Source": "V",
    "BJT NPN": "Q",
    "BJT PNP": "Q",
    "Ground": "GND",
}

# Unrotated pin offsets in grid units, in pin order.
# BJTs: Base, Collector, Emitter.
TERMINAL_GEOMETRY = {
    "Resistor": [(-2, 0), (2, 0)],
    "Capacitor": [(-2, 0), (2, 0)],
    "Inductor": [(-2, 0), (2, 0)],
    "Diode": [(-2, 0), (2, 0)],
    "Battery": [(-2, 0), (2, 0)],
    "AC Source": [(-2, 0), (2, 0)],
    "BJT NPN": [(0, 0), (0, -2), (0, 2)],
    "BJT PNP": [(0, 0), (0, -2), (0, 2)],
    "Ground": [(0, 0)],
}

# Half of the body thickness across the pin axis, in grid units.
BODY_HALF_WIDTH = {
    "BJT NPN": 1.0,
    "BJT PNP": 1.0,
    "Ground": 1.0,
}
_DEFAULT_BODY_HALF_WIDTH = 0.5

# Mapping from legacy lower-case document keys to canonical display names
_LEGACY_TO_DISPLAY = {
    "resistor": "Resistor",
    "capacitor": "Capacitor",
    "inductor": "Inductor",
    "diode": "Diode",
    "battery": "Battery",
    "ac": "AC Source",
    "npn": "BJT NPN",
    "pnp": "BJT PNP",
    "ground": "Ground",
}

# Exact unit vectors for quarter turns so pin coordinates stay integral.
_QUARTER_TURNS = {0: (1, 0), 90: (0, 1), 180: (-1, 0), 270: (0, -1)}


def _rotation_vector(rotation: float) -> tuple[float, float]:
    quarter = _QUARTER_TURNS.get(int(rotation) % 360) if float(rotation).is_integer() else None
    if quarter is not None:
        return quarter
    rad = math.radians(rotation)
    return math.cos(rad), math.sin(rad)


@dataclass
class ComponentData:
    """
    Pure Python data class representing a placed schematic component.

    ``position`` is the component's center; ``rotation`` is in degrees.
    """

    component_id: str
    component_type: str
    position: tuple[float, float] = (0.0, 0.0)
    rotation: int = 0

    def __post_init__(self):
        self.position = (float(self.position[0]), float(self.position[1]))

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    @property
    def is_two_pin(self) -> bool:
        return self.component_type in TWO_PIN_TYPES

    def get_terminal_positions(
        self, grid_size: float = GRID_SIZE, position: Optional[tuple[float, float]] = None
    ) -> list[Point]:
        """
        Return pin positions in scene coordinates (after rotation and translation).

        Args:
            grid_size: Grid pitch the pin offsets are expressed in.
            position: Evaluate as if the center were here instead of
                ``self.position`` (used to test candidate moves).

        Returns:
            List of Points, one per pin.
        """
        cx, cy = position if position is not None else self.position
        cos_a, sin_a = _rotation_vector(self.rotation)
        pins = []
        for ux, uy in TERMINAL_GEOMETRY.get(self.component_type, [(-2, 0), (2, 0)]):
            tx = ux * grid_size
            ty = uy * grid_size
            pins.append(Point(cx + tx * cos_a - ty * sin_a, cy + tx * sin_a + ty * cos_a))
        return pins

    def pin_axis(self, grid_size: float = GRID_SIZE) -> Optional[str]:
        """Return 'x' or 'y' for an axis-aligned two-pin part, else None."""
        if not self.is_two_pin:
            return None
        a, b = self.get_terminal_positions(grid_size)
        if a.y == b.y and a.x != b.x:
            return "x"
        if a.x == b.x and a.y != b.y:
            return "y"
        return None

    def get_bounding_rect(
        self, grid_size: float = GRID_SIZE, position: Optional[tuple[float, float]] = None
    ) -> tuple[float, float, float, float]:
        """
        Return the body extent as (min_x, min_y, max_x, max_y).

        The extent spans the pins and is padded by the body half-width on
        every side where the pins do not already define it. Two-pin parts
        are not padded along their pin axis so parts can sit pin to pin.
        """
        pins = self.get_terminal_positions(grid_size, position)
        xs = [p.x for p in pins]
        ys = [p.y for p in pins]
        pad = BODY_HALF_WIDTH.get(self.component_type, _DEFAULT_BODY_HALF_WIDTH) * grid_size
        axis = self.pin_axis(grid_size)
        pad_x = 0.0 if axis == "x" else pad
        pad_y = 0.0 if axis == "y" else pad
        return (min(xs) - pad_x, min(ys) - pad_y, max(xs) + pad_x, max(ys) + pad_y)

    def to_dict(self) -> dict:
        """Serialize component to dictionary."""
        return {
            "type": self.component_type,
            "id": self.component_id,
            "pos": {"x": self.position[0], "y": self.position[1]},
            "rotation": self.rotation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ComponentData":
        """
        Deserialize component from dictionary.

        Handles both legacy lower-case keys ('resistor', 'npn') and display
        names in the 'type' field, and both the ``pos`` object and flat
        ``x``/``y``/``rot`` fields.
        """
        raw_type = data["type"]
        component_type = _LEGACY_TO_DISPLAY.get(raw_type, raw_type)
        if "pos" in data:
            position = (data["pos"]["x"], data["pos"]["y"])
        else:
            position = (data["x"], data["y"])
        return cls(
            component_id=data["id"],
            component_type=component_type,
            position=position,
            rotation=int(data.get("rotation", data.get("rot", 0))) % 360,
        )

    def __repr__(self) -> str:
        return f"ComponentData({self.component_id}, {self.component_type}, pos={self.position})"
