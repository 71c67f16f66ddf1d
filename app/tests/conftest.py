"""
Shared test fixtures for the wire engine test suite.

All fixtures build pure-Python model objects (no Qt dependencies). Most
tests run on a 5-unit grid so that a two-pin part spans 20 units and has a
pin half-span of 10.
"""

import itertools
import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, wiring, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from models.component import ComponentData
from models.schematic import SchematicModel
from models.settings import EngineSettings
from models.stroke import RGBA, Stroke
from models.wire import WireData

GRID = 5

S1 = Stroke(width=0.5, style="solid", color=RGBA(1.0, 0.0, 0.0, 1.0))
S2 = Stroke(width=0.3, style="dash", color=RGBA(0.0, 0.0, 1.0, 1.0))


def make_component(component_type, component_id, position=(0.0, 0.0), rotation=0):
    """Helper to create a ComponentData with minimal boilerplate."""
    return ComponentData(
        component_id=component_id,
        component_type=component_type,
        position=position,
        rotation=rotation,
    )


def make_wire(wire_id, *points, stroke=None, net_id="default", color=None):
    """Helper to create a WireData from (x, y) pairs."""
    return WireData(
        id=wire_id,
        points=tuple(points),
        stroke=stroke or Stroke(),
        net_id=net_id,
        color=color,
    )


@pytest.fixture
def settings():
    return EngineSettings(grid_size=GRID)


@pytest.fixture
def new_id():
    """Id factory that yields n1, n2, ... per prefix."""
    counters = {}

    def factory(prefix):
        counters.setdefault(prefix, itertools.count(1))
        return f"n{prefix}{next(counters[prefix])}"

    return factory


@pytest.fixture
def scenario_a():
    """
    A (S1) -- R -- B (S2), all on y = 0.

    Wire A runs 0..40, wire B runs 60..100 and the resistor's pins sit at
    40 and 60, so it is embedded in the run.
    """
    components = [make_component("Resistor", "R1", (50.0, 0.0))]
    wires = [
        make_wire("A", (0, 0), (40, 0), stroke=S1),
        make_wire("B", (60, 0), (100, 0), stroke=S2),
    ]
    return components, wires


@pytest.fixture
def scenario_a_model(scenario_a):
    components, wires = scenario_a
    return SchematicModel(
        components={c.component_id: c for c in components},
        wires=list(wires),
    )


@pytest.fixture
def two_resistor_model():
    """
    0 -- R1 -- wire -- R2 -- 100 on y = 0.

    R1 is centered at 20 (pins 10, 30) and R2 at 60 (pins 50, 70); three
    wires fill the gaps so both parts are embedded in one straight run.
    """
    components = [
        make_component("Resistor", "R1", (20.0, 0.0)),
        make_component("Resistor", "R2", (60.0, 0.0)),
    ]
    wires = [
        make_wire("W1", (0, 0), (10, 0), stroke=S1),
        make_wire("W2", (30, 0), (50, 0)),
        make_wire("W3", (70, 0), (100, 0), stroke=S2),
    ]
    return SchematicModel(components={c.component_id: c for c in components}, wires=wires)


@pytest.fixture
def events():
    """Fixture that returns a list and a callback that appends events to it."""
    recorded = []

    def callback(event, data):
        recorded.append((event, data))

    return recorded, callback
