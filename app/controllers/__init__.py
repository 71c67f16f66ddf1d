"""
Controllers for the schematic wire engine.

This package contains Qt-free controller classes that orchestrate edits
between the models and views using an observer pattern.
"""

from .move_controller import MoveCollapseContext, SwpMoveController
from .schematic_controller import SchematicController
from .slide_context import SlideContext, build_slide_context

__all__ = [
    "SchematicController",
    "SwpMoveController",
    "MoveCollapseContext",
    "SlideContext",
    "build_slide_context",
]
