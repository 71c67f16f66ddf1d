"""
Pure Python data models for the schematic wire engine.

This package contains Qt-free data classes for components, wires, strokes
and the derived wire topology. Only Python standard library types are used.
"""

from .component import (
    COMPONENT_TYPES,
    SPICE_SYMBOLS,
    TERMINAL_GEOMETRY,
    TWO_PIN_TYPES,
    ComponentData,
)
from .schematic import SchematicModel, validate_schematic_data
from .settings import DEFAULT_SETTINGS, EngineSettings
from .stroke import RGBA, NetClass, ResolvedStroke, Stroke, effective_stroke
from .topology import SWP, ComponentBridge, Junction, TopoNode, Topology, WireEdge
from .wire import Point, WireData

__all__ = [
    "ComponentData",
    "COMPONENT_TYPES",
    "SPICE_SYMBOLS",
    "TERMINAL_GEOMETRY",
    "TWO_PIN_TYPES",
    "SchematicModel",
    "validate_schematic_data",
    "EngineSettings",
    "DEFAULT_SETTINGS",
    "RGBA",
    "Stroke",
    "ResolvedStroke",
    "NetClass",
    "effective_stroke",
    "TopoNode",
    "WireEdge",
    "ComponentBridge",
    "SWP",
    "Junction",
    "Topology",
    "Point",
    "WireData",
]
