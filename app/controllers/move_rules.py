"""
Placement rules shared by every way of moving a component.

A candidate position is illegal when the component's body would overlap
another component's body, or when any of its pins would land on another
component's pin.
"""

from typing import Callable, Iterable, Optional

from models.component import ComponentData
from models.settings import EngineSettings

from wiring.geometry import along, points_close, rects_overlap


def center_along_axis(component: ComponentData, axis: str) -> float:
    return component.x if axis == "x" else component.y


def pin_span_along_axis(component: ComponentData, axis: str, grid_size: float,
                        position: Optional[tuple[float, float]] = None) -> tuple[float, float]:
    """(lo, hi) of the first two pins along ``axis``."""
    pins = component.get_terminal_positions(grid_size, position)
    if len(pins) < 2:
        return (0.0, 0.0)
    values = sorted((along(pins[0], axis), along(pins[1], axis)))
    return values[0], values[1]


def half_pin_span(component: ComponentData, axis: str, grid_size: float) -> float:
    lo, hi = pin_span_along_axis(component, axis, grid_size)
    return (hi - lo) / 2


def overlaps_any_other_at(component: ComponentData, position: tuple[float, float],
                          others: Iterable[ComponentData], grid_size: float) -> bool:
    """True if the body at ``position`` would overlap another component's body."""
    mine = component.get_bounding_rect(grid_size, position)
    for other in others:
        if other.component_id == component.component_id:
            continue
        if rects_overlap(mine, other.get_bounding_rect(grid_size)):
            return True
    return False


def pins_coincide_any_at(component: ComponentData, position: tuple[float, float],
                         others: Iterable[ComponentData], settings: EngineSettings,
                         snap: Callable[[float], float]) -> bool:
    """True if a pin at ``position`` would land on another component's pin."""
    grid = settings.grid_size
    mine = [(snap(p.x), snap(p.y)) for p in component.get_terminal_positions(grid, position)]
    for other in others:
        if other.component_id == component.component_id:
            continue
        for p in other.get_terminal_positions(grid):
            theirs = (snap(p.x), snap(p.y))
            if any(points_close(m, theirs, settings.pin_epsilon) for m in mine):
                return True
    return False


def is_legal_position(component: ComponentData, position: tuple[float, float],
                      others: list[ComponentData], settings: EngineSettings,
                      snap: Callable[[float], float]) -> bool:
    """A candidate is legal when it neither overlaps nor makes pins coincide."""
    if overlaps_any_other_at(component, position, others, settings.grid_size):
        return False
    return not pins_coincide_any_at(component, position, others, settings, snap)
